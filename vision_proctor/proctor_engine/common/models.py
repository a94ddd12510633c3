# vision_proctor/proctor_engine/common/models.py
import numpy as np
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, Tuple, List
from .enums import AlertSeverity, PostureVerdict, GazeVerdict, SessionState, MessageRole

class FrameSample(BaseModel):
    """A single captured camera frame with its capture metadata."""
    image: np.ndarray
    frame_id: int
    timestamp: float
    source_resolution: Tuple[int, int]

    class Config:
        arbitrary_types_allowed = True

class Landmark(BaseModel):
    """A normalized 2D keypoint. x and y are relative to the frame size."""
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None

class PoseResult(BaseModel):
    """Landmarks produced by the pose adapter for one frame.

    An empty landmark list means no body was found. Entries may be None when the
    model did not report that point.
    """
    frame_id: int
    timestamp: float
    processing_time_ms: float = 0.0
    landmarks: List[Optional[Landmark]] = Field(default_factory=list)

    def landmark(self, index: int) -> Optional[Landmark]:
        if 0 <= index < len(self.landmarks):
            return self.landmarks[index]
        return None

class FaceDetection(BaseModel):
    score: float = 0.0
    keypoints: List[Landmark] = Field(default_factory=list)
    bbox: Optional[Tuple[float, float, float, float]] = None

class FaceResult(BaseModel):
    """All face detections reported by the face adapter for one frame."""
    frame_id: int
    timestamp: float
    processing_time_ms: float = 0.0
    detections: List[FaceDetection] = Field(default_factory=list)

class Alert(BaseModel):
    id: int
    message: str
    severity: AlertSeverity
    created_at: float
    tag: Optional[str] = None

    class Config:
        frozen = True

class SessionSnapshot(BaseModel):
    """Read-only view of a session, handed to display layers."""
    status: SessionState
    posture: PostureVerdict
    gaze: GazeVerdict
    alerts: List[Alert] = Field(default_factory=list)
    last_pose: Optional[PoseResult] = None

class DialogueMessage(BaseModel):
    role: MessageRole
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)

class SkillReport(BaseModel):
    found_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    score: int = 0
    word_count: int = 0
