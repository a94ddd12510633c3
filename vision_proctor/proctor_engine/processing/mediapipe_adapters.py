# vision_proctor/proctor_engine/processing/mediapipe_adapters.py
import cv2
import time
import mediapipe as mp
from ..common.config import FaceConfig, PoseConfig
from ..common.enums import AdapterKind
from ..common.models import FaceDetection, FaceResult, FrameSample, Landmark, PoseResult
from .adapters import LandmarkAdapter

def _to_rgb(frame: FrameSample):
    frame_rgb = cv2.cvtColor(frame.image, cv2.COLOR_BGR2RGB)
    frame_rgb.flags.writeable = False # Performance optimization
    return frame_rgb

class PoseAdapter(LandmarkAdapter):
    """MediaPipe Pose behind the adapter interface."""

    kind = AdapterKind.POSE

    def __init__(self, config: PoseConfig):
        super().__init__()
        self.config = config
        self.pose = None

    def _load(self):
        self.mp_pose = mp.solutions.pose
        self.pose = self.mp_pose.Pose(
            static_image_mode=False,
            model_complexity=self.config.model_complexity,
            smooth_landmarks=self.config.smooth_landmarks,
            enable_segmentation=False,
            min_detection_confidence=self.config.min_detection_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence
        )

    def _process(self, frame: FrameSample) -> PoseResult:
        start_time = time.perf_counter()
        results = self.pose.process(_to_rgb(frame))
        processing_time_ms = (time.perf_counter() - start_time) * 1000

        landmarks = []
        if results.pose_landmarks:
            landmarks = [
                Landmark(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility)
                for lm in results.pose_landmarks.landmark
            ]

        return PoseResult(
            frame_id=frame.frame_id,
            timestamp=frame.timestamp,
            processing_time_ms=processing_time_ms,
            landmarks=landmarks,
        )

    def _release(self):
        if self.pose is not None:
            self.pose.close()
            self.pose = None

class FaceAdapter(LandmarkAdapter):
    """MediaPipe Face Detection behind the adapter interface."""

    kind = AdapterKind.FACE

    # 'short' is tuned for faces within ~2m of the camera, 'full' for up to ~5m.
    MODEL_SELECTION = {'short': 0, 'full': 1}

    def __init__(self, config: FaceConfig):
        super().__init__()
        self.config = config
        self.detector = None

    def _load(self):
        self.detector = mp.solutions.face_detection.FaceDetection(
            model_selection=self.MODEL_SELECTION[self.config.model],
            min_detection_confidence=self.config.min_detection_confidence
        )

    def _process(self, frame: FrameSample) -> FaceResult:
        start_time = time.perf_counter()
        results = self.detector.process(_to_rgb(frame))
        processing_time_ms = (time.perf_counter() - start_time) * 1000

        detections = []
        for detection in results.detections or []:
            location = detection.location_data
            box = location.relative_bounding_box
            detections.append(FaceDetection(
                score=detection.score[0] if detection.score else 0.0,
                keypoints=[Landmark(x=kp.x, y=kp.y) for kp in location.relative_keypoints],
                bbox=(box.xmin, box.ymin, box.width, box.height),
            ))

        return FaceResult(
            frame_id=frame.frame_id,
            timestamp=frame.timestamp,
            processing_time_ms=processing_time_ms,
            detections=detections,
        )

    def _release(self):
        if self.detector is not None:
            self.detector.close()
            self.detector = None
