# vision_proctor/proctor_engine/processing/classifiers.py
from typing import Optional
from ..common.enums import GazeVerdict, PostureVerdict
from ..common.models import FaceResult, PoseResult

# MediaPipe Pose landmark indices
NOSE = 0
LEFT_SHOULDER = 11
RIGHT_SHOULDER = 12
LEFT_ELBOW = 13
RIGHT_ELBOW = 14
LEFT_WRIST = 15
RIGHT_WRIST = 16
LEFT_HIP = 23
RIGHT_HIP = 24

# MediaPipe Face Detection keypoint index
FACE_NOSE_TIP = 2

# Upper-body skeleton handed to drawing layers: arms, shoulder line, torso sides, hip line.
SKELETON_CONNECTIONS = (
    (LEFT_SHOULDER, LEFT_ELBOW), (LEFT_ELBOW, LEFT_WRIST),
    (RIGHT_SHOULDER, RIGHT_ELBOW), (RIGHT_ELBOW, RIGHT_WRIST),
    (LEFT_SHOULDER, RIGHT_SHOULDER),
    (LEFT_SHOULDER, LEFT_HIP), (RIGHT_SHOULDER, RIGHT_HIP),
    (LEFT_HIP, RIGHT_HIP),
)

POSTURE_THRESHOLD = 0.25
GAZE_MIN_X = 0.4
GAZE_MAX_X = 0.6

def nose_to_shoulder_distance(pose: Optional[PoseResult]) -> Optional[float]:
    """Vertical distance between the nose and the shoulder midpoint, or None if a point is missing."""
    if pose is None:
        return None
    nose = pose.landmark(NOSE)
    left_shoulder = pose.landmark(LEFT_SHOULDER)
    right_shoulder = pose.landmark(RIGHT_SHOULDER)
    if nose is None or left_shoulder is None or right_shoulder is None:
        return None
    shoulder_mid_y = (left_shoulder.y + right_shoulder.y) / 2
    return abs(nose.y - shoulder_mid_y)

def classify_posture(pose: Optional[PoseResult], threshold: float = POSTURE_THRESHOLD) -> PostureVerdict:
    """
    A nose sitting unusually close to the shoulder line means the subject is
    slouching or leaning into the camera. Distances strictly below the
    threshold are LOW_CONFIDENCE; the threshold itself counts as OPTIMAL.
    """
    distance = nose_to_shoulder_distance(pose)
    if distance is None:
        return PostureVerdict.UNKNOWN
    if distance < threshold:
        return PostureVerdict.LOW_CONFIDENCE
    return PostureVerdict.OPTIMAL

def classify_gaze(face: Optional[FaceResult], min_x: float = GAZE_MIN_X, max_x: float = GAZE_MAX_X) -> GazeVerdict:
    """Uses the horizontal nose-tip position of the first face as an eye-contact proxy."""
    if face is None or not face.detections:
        return GazeVerdict.NO_FACE

    keypoints = face.detections[0].keypoints
    if len(keypoints) <= FACE_NOSE_TIP:
        return GazeVerdict.UNKNOWN

    x = keypoints[FACE_NOSE_TIP].x
    if x < min_x or x > max_x:
        return GazeVerdict.OFF_CENTER
    return GazeVerdict.CENTERED
