# vision_proctor/proctor_engine/common/enums.py
from enum import Enum

class SessionState(str, Enum):
    """Lifecycle state of a ProctorSession."""
    IDLE = "IDLE"
    LOADING = "LOADING"
    ACTIVE = "ACTIVE"
    STOPPED = "STOPPED"

class PostureVerdict(str, Enum):
    OPTIMAL = "OPTIMAL"
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    UNKNOWN = "UNKNOWN"

class GazeVerdict(str, Enum):
    CENTERED = "CENTERED"
    OFF_CENTER = "OFF_CENTER"
    NO_FACE = "NO_FACE"
    UNKNOWN = "UNKNOWN"

class AlertSeverity(str, Enum):
    WARNING = "WARNING"
    ERROR = "ERROR"

class AdapterKind(str, Enum):
    """Identifies which inference collaborator produced a result."""
    POSE = "POSE"
    FACE = "FACE"

class DialogueState(str, Enum):
    """Turn state of the spoken interview exchange."""
    IDLE = "IDLE"
    LISTENING = "LISTENING"
    THINKING = "THINKING"
    SPEAKING = "SPEAKING"

class MessageRole(str, Enum):
    USER = "USER"
    AI = "AI"
    SYSTEM = "SYSTEM"

class LogLevel(str, Enum):
    """Defines logging levels for structured logging."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
