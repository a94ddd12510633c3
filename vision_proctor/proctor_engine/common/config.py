# vision_proctor/proctor_engine/common/config.py
import logging
import yaml
from pathlib import Path
from pydantic import BaseModel, Field, ValidationError
from typing import List, Literal, Tuple, Union
from .enums import LogLevel
from .errors import ConfigError

DEFAULT_REQUIRED_SKILLS = ['React', 'Python', 'JavaScript', 'Node.js', 'System Design', 'DSA', 'Database']

class CameraConfig(BaseModel):
    source: Union[int, str] = 0
    resolution: Tuple[int, int] = (1280, 720)
    target_fps: int = Field(30, gt=0)
    buffer_size: int = Field(5, gt=0)

class PoseConfig(BaseModel):
    model_complexity: int = Field(1, ge=0, le=2)
    smooth_landmarks: bool = True
    min_detection_confidence: float = Field(0.5, ge=0.0, le=1.0)
    min_tracking_confidence: float = Field(0.5, ge=0.0, le=1.0)

    class Config:
        protected_namespaces = ()

class FaceConfig(BaseModel):
    model: Literal['short', 'full'] = 'short'
    min_detection_confidence: float = Field(0.5, ge=0.0, le=1.0)

class ClassifierConfig(BaseModel):
    posture_threshold: float = 0.25
    gaze_min_x: float = 0.4
    gaze_max_x: float = 0.6

class AlertConfig(BaseModel):
    ttl_ms: int = Field(3000, gt=0)
    suppress_duplicates: bool = True

class VisualizationConfig(BaseModel):
    draw_landmarks: bool = True
    draw_hud: bool = True
    window_name: str = 'Vision Proctor'

class InterviewConfig(BaseModel):
    thinking_delay_s: float = Field(2.0, ge=0.0)
    required_skills: List[str] = Field(default_factory=lambda: list(DEFAULT_REQUIRED_SKILLS))

class LoggingConfig(BaseModel):
    level: LogLevel = LogLevel.INFO
    format: str = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

class ProctorConfig(BaseModel):
    """Top-level application configuration, one section per component."""
    camera: CameraConfig = Field(default_factory=CameraConfig)
    pose: PoseConfig = Field(default_factory=PoseConfig)
    face: FaceConfig = Field(default_factory=FaceConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    alerts: AlertConfig = Field(default_factory=AlertConfig)
    visualization: VisualizationConfig = Field(default_factory=VisualizationConfig)
    interview: InterviewConfig = Field(default_factory=InterviewConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

def load_config(path) -> ProctorConfig:
    """Reads a YAML config file. Missing sections fall back to their defaults."""
    path = Path(path)
    try:
        with open(path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except (IOError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read configuration file '{path}'. {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file '{path}' must contain a mapping at the top level.")

    try:
        return ProctorConfig(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in '{path}'. {e}") from e

def configure_logging(config: LoggingConfig) -> None:
    logging.basicConfig(level=config.level.value, format=config.format)
