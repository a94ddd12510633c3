import time

import numpy as np
import pytest

from proctor_engine.camera import camera_manager
from proctor_engine.camera.camera_manager import CameraManager
from proctor_engine.common.config import CameraConfig
from proctor_engine.common.errors import UnsupportedEnvironment


class FakeCapture:
    instances = []

    def __init__(self, source, opened=True, shape=(48, 64, 3)):
        self.source = source
        self.opened = opened
        self.shape = shape
        self.released = False
        self.props = {}
        FakeCapture.instances.append(self)

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value

    def get(self, prop):
        return self.props.get(prop, 0)

    def grab(self):
        time.sleep(0.001)
        return True

    def retrieve(self):
        return True, np.zeros(self.shape, dtype=np.uint8)

    def release(self):
        self.released = True


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        assert time.monotonic() < deadline, "condition was not met in time"
        time.sleep(0.001)


@pytest.fixture(autouse=True)
def fake_capture(monkeypatch):
    FakeCapture.instances = []
    monkeypatch.setattr(camera_manager.cv2, "VideoCapture", FakeCapture)
    return FakeCapture


def test_unavailable_camera_raises_unsupported_environment(monkeypatch):
    monkeypatch.setattr(camera_manager.cv2, "VideoCapture", lambda source: FakeCapture(source, opened=False))
    camera = CameraManager(CameraConfig(source=3))

    with pytest.raises(UnsupportedEnvironment):
        camera.open()
    assert FakeCapture.instances[-1].released
    assert not camera.is_running()


def test_frames_flow_after_open():
    camera = CameraManager(CameraConfig(target_fps=25))
    assert camera.frame_interval == pytest.approx(0.04)
    assert not camera.is_frame_ready()
    assert camera.get_frame() is None

    with camera:
        wait_for(camera.is_frame_ready)
        first = camera.get_frame()
        wait_for(lambda: camera.get_frame().frame_id > first.frame_id)

    assert first.source_resolution == (64, 48)
    assert first.image.shape == (48, 64, 3)
    assert FakeCapture.instances[-1].released
    assert not camera.is_frame_ready()


def test_camera_can_be_reopened():
    camera = CameraManager(CameraConfig())
    camera.open()
    camera.close()
    camera.close()
    camera.open()
    wait_for(camera.is_frame_ready)
    camera.close()

    assert len(FakeCapture.instances) == 2
    assert all(capture.released for capture in FakeCapture.instances)


def test_failed_retrieves_are_counted_as_dropped(monkeypatch, caplog):
    class FlakyCapture(FakeCapture):
        def retrieve(self):
            return False, None

    monkeypatch.setattr(camera_manager.cv2, "VideoCapture", FlakyCapture)
    camera = CameraManager(CameraConfig())

    with caplog.at_level("INFO", logger=camera_manager.__name__):
        camera.open()
        wait_for(lambda: camera.dropped_frames >= 3)
        camera.close()

    assert not camera.is_frame_ready()
    assert "dropped frames" in caplog.text
