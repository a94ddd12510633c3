# vision_proctor/proctor_engine/camera/camera_manager.py
import cv2
import time
import logging
import threading
from collections import deque
from typing import Optional
from ..common.config import CameraConfig
from ..common.errors import UnsupportedEnvironment
from ..common.models import FrameSample

logger = logging.getLogger(__name__)

class CameraManager:
    """Non-blocking camera capture running in a separate thread.

    The device is only opened by open(), so one manager can be opened and closed
    across several proctoring sessions.
    """

    def __init__(self, config: CameraConfig):
        self.config = config
        self._source = config.source
        self._resolution = tuple(config.resolution)
        self._target_fps = config.target_fps
        self._cap = None

        self._buffer = deque(maxlen=config.buffer_size)
        self._lock = threading.Lock()
        self._thread = None
        self._running = False
        self._frame_id = 0
        self._dropped_frames = 0

    @property
    def frame_interval(self) -> float:
        """Seconds between frames at the requested capture rate."""
        return 1.0 / self._target_fps

    def open(self):
        if self._running:
            return
        cap = cv2.VideoCapture(self._source)
        if not cap.isOpened():
            cap.release()
            raise UnsupportedEnvironment(f"Cannot open camera source: {self._source}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._resolution[0])
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._resolution[1])
        cap.set(cv2.CAP_PROP_FPS, self._target_fps)

        self._cap = cap
        self._buffer.clear()
        self._running = True
        self._thread = threading.Thread(target=self._update, daemon=True)
        self._thread.start()
        logger.info("Camera %s opened.", self._source)

    def close(self):
        if self._cap is None:
            return
        self._running = False
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._cap.release()
        self._cap = None
        with self._lock:
            self._buffer.clear()
        logger.info("Camera %s released (%d dropped frames).", self._source, self._dropped_frames)

    def _update(self):
        """The frame-grabbing loop running in a dedicated thread."""
        while self._running:
            grabbed = self._cap.grab()
            if not grabbed:
                self._dropped_frames += 1
                time.sleep(0.01)
                continue

            ret, frame = self._cap.retrieve()
            if ret:
                timestamp = time.perf_counter()
                self._frame_id += 1
                with self._lock:
                    self._buffer.append((frame, self._frame_id, timestamp))
            else:
                self._dropped_frames += 1

    def is_frame_ready(self) -> bool:
        with self._lock:
            return bool(self._buffer)

    def get_frame(self) -> Optional[FrameSample]:
        """Returns the most recent decoded frame, or None if nothing was captured yet."""
        with self._lock:
            if not self._buffer:
                return None
            frame, frame_id, timestamp = self._buffer[-1]

        return FrameSample(
            image=frame.copy(),
            frame_id=frame_id,
            timestamp=timestamp,
            source_resolution=(frame.shape[1], frame.shape[0]),
        )

    @property
    def dropped_frames(self) -> int:
        return self._dropped_frames

    def is_running(self) -> bool:
        return self._running

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
