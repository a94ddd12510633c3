import pytest

from fakes import make_face, make_pose
from proctor_engine.common.enums import GazeVerdict, PostureVerdict
from proctor_engine.common.models import FaceDetection, FaceResult, Landmark, PoseResult
from proctor_engine.processing.classifiers import (
    LEFT_SHOULDER,
    NOSE,
    RIGHT_SHOULDER,
    SKELETON_CONNECTIONS,
    classify_gaze,
    classify_posture,
    nose_to_shoulder_distance,
)


def test_posture_unknown_without_pose():
    assert classify_posture(None) is PostureVerdict.UNKNOWN


def test_posture_unknown_when_no_body_found():
    assert classify_posture(PoseResult(frame_id=1, timestamp=0.0)) is PostureVerdict.UNKNOWN


@pytest.mark.parametrize("missing", [NOSE, LEFT_SHOULDER, RIGHT_SHOULDER])
def test_posture_unknown_when_key_landmark_missing(missing):
    pose = make_pose(1, distance=0.4)
    pose.landmarks[missing] = None
    assert classify_posture(pose) is PostureVerdict.UNKNOWN


def test_posture_unknown_when_landmark_list_is_truncated():
    pose = make_pose(1)
    pose.landmarks = pose.landmarks[:12]
    assert classify_posture(pose) is PostureVerdict.UNKNOWN


def test_posture_low_confidence_when_nose_close_to_shoulders():
    assert classify_posture(make_pose(1, distance=0.10)) is PostureVerdict.LOW_CONFIDENCE


def test_posture_optimal_when_upright():
    assert classify_posture(make_pose(1, distance=0.40)) is PostureVerdict.OPTIMAL


def test_posture_threshold_itself_is_optimal():
    landmarks = [Landmark(x=0.5, y=0.5) for _ in range(33)]
    landmarks[NOSE] = Landmark(x=0.5, y=0.25)
    landmarks[LEFT_SHOULDER] = Landmark(x=0.6, y=0.5)
    landmarks[RIGHT_SHOULDER] = Landmark(x=0.4, y=0.5)
    pose = PoseResult(frame_id=1, timestamp=0.0, landmarks=landmarks)

    assert nose_to_shoulder_distance(pose) == 0.25
    assert classify_posture(pose) is PostureVerdict.OPTIMAL


def test_posture_uses_shoulder_midpoint_and_absolute_distance():
    landmarks = [Landmark(x=0.5, y=0.5) for _ in range(33)]
    # Nose below the shoulders (camera upside down or subject lying back).
    landmarks[NOSE] = Landmark(x=0.5, y=0.75)
    landmarks[LEFT_SHOULDER] = Landmark(x=0.6, y=0.25)
    landmarks[RIGHT_SHOULDER] = Landmark(x=0.4, y=0.75)
    pose = PoseResult(frame_id=1, timestamp=0.0, landmarks=landmarks)

    assert nose_to_shoulder_distance(pose) == 0.25
    assert classify_posture(pose) is PostureVerdict.OPTIMAL


def test_posture_threshold_is_overridable():
    pose = make_pose(1, distance=0.3)
    assert classify_posture(pose) is PostureVerdict.OPTIMAL
    assert classify_posture(pose, threshold=0.35) is PostureVerdict.LOW_CONFIDENCE


def test_gaze_no_face_without_detections():
    assert classify_gaze(None) is GazeVerdict.NO_FACE
    assert classify_gaze(FaceResult(frame_id=1, timestamp=0.0)) is GazeVerdict.NO_FACE


@pytest.mark.parametrize("x", [0.4, 0.45, 0.5, 0.6])
def test_gaze_centered_inside_inclusive_band(x):
    assert classify_gaze(make_face(1, nose_x=x)) is GazeVerdict.CENTERED


@pytest.mark.parametrize("x", [0.0, 0.399, 0.601, 0.95])
def test_gaze_off_center_outside_band(x):
    assert classify_gaze(make_face(1, nose_x=x)) is GazeVerdict.OFF_CENTER


def test_gaze_only_looks_at_first_detection():
    face = make_face(1, nose_x=0.5)
    face.detections.append(make_face(1, nose_x=0.9).detections[0])
    assert classify_gaze(face) is GazeVerdict.CENTERED


def test_gaze_unknown_when_nose_tip_missing():
    face = FaceResult(frame_id=1, timestamp=0.0,
                      detections=[FaceDetection(keypoints=[Landmark(x=0.5, y=0.5)])])
    assert classify_gaze(face) is GazeVerdict.UNKNOWN


def test_gaze_band_is_overridable():
    face = make_face(1, nose_x=0.65)
    assert classify_gaze(face, min_x=0.3, max_x=0.7) is GazeVerdict.CENTERED


def test_skeleton_connections_cover_upper_body():
    assert (LEFT_SHOULDER, RIGHT_SHOULDER) in SKELETON_CONNECTIONS
    assert (23, 24) in SKELETON_CONNECTIONS
    assert all(max(pair) < 33 for pair in SKELETON_CONNECTIONS)
