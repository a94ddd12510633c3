# vision_proctor/proctor_engine/visualization/visualizer.py
import cv2
import numpy as np
from ..common.config import VisualizationConfig
from ..common.enums import AlertSeverity, GazeVerdict, PostureVerdict
from ..common.models import PoseResult, SessionSnapshot
from ..processing.classifiers import SKELETON_CONNECTIONS

SKELETON_COLOR = (246, 92, 139)   # BGR
GOOD_COLOR = (129, 185, 16)
WARN_COLOR = (11, 158, 245)
ERROR_COLOR = (68, 68, 239)
TEXT_COLOR = (240, 240, 240)

class Visualizer:
    """Draws a session snapshot onto a camera frame for the local preview window."""

    def __init__(self, config: VisualizationConfig):
        self.config = config
        self.font = cv2.FONT_HERSHEY_SIMPLEX

    def render(self, frame: np.ndarray, snapshot: SessionSnapshot, current_fps: float) -> np.ndarray:
        output_frame = frame.copy()

        if snapshot.last_pose is not None and self.config.draw_landmarks:
            self._draw_skeleton(output_frame, snapshot.last_pose)

        if self.config.draw_hud:
            self._draw_hud(output_frame, snapshot, current_fps)
            self._draw_alerts(output_frame, snapshot)

        return output_frame

    def _draw_skeleton(self, frame: np.ndarray, pose: PoseResult):
        # Landmarks are normalized, so scale by whatever size this frame has.
        h, w = frame.shape[:2]

        def to_px(lm):
            return int(lm.x * w), int(lm.y * h)

        for start, end in SKELETON_CONNECTIONS:
            a, b = pose.landmark(start), pose.landmark(end)
            if a is not None and b is not None:
                cv2.line(frame, to_px(a), to_px(b), SKELETON_COLOR, 2, cv2.LINE_AA)

        for lm in pose.landmarks:
            if lm is not None:
                cv2.circle(frame, to_px(lm), 5, SKELETON_COLOR, -1, cv2.LINE_AA)

    def _draw_hud(self, frame: np.ndarray, snapshot: SessionSnapshot, fps: float):
        posture_ok = snapshot.posture is PostureVerdict.OPTIMAL
        gaze_ok = snapshot.gaze is GazeVerdict.CENTERED
        hud_elements = [
            (f"FPS: {fps:.1f}", TEXT_COLOR),
            (f"Session: {snapshot.status.value}", TEXT_COLOR),
            (f"Posture: {snapshot.posture.value}", GOOD_COLOR if posture_ok else WARN_COLOR),
            (f"Eye contact: {snapshot.gaze.value}", GOOD_COLOR if gaze_ok else WARN_COLOR),
        ]
        for i, (text, color) in enumerate(hud_elements):
            cv2.putText(frame, text, (10, 30 + i * 30), self.font, 0.7, color, 2, cv2.LINE_AA)

    def _draw_alerts(self, frame: np.ndarray, snapshot: SessionSnapshot):
        w = frame.shape[1]
        for i, alert in enumerate(snapshot.alerts):
            color = ERROR_COLOR if alert.severity == AlertSeverity.ERROR else WARN_COLOR
            (text_w, _), _ = cv2.getTextSize(alert.message, self.font, 0.6, 2)
            x = max(10, w - text_w - 20)
            cv2.putText(frame, alert.message, (x, 30 + i * 28), self.font, 0.6, color, 2, cv2.LINE_AA)
