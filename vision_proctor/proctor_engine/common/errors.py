# vision_proctor/proctor_engine/common/errors.py

class ProctorError(Exception):
    """Base class for every error raised by the proctoring engine."""

class ConfigError(ProctorError):
    """The configuration file is missing, malformed or fails validation."""

class InitError(ProctorError):
    """An adapter could not load its inference model. Fatal to the session attempt."""

class InferenceError(ProctorError):
    """A single frame could not be processed. The frame is skipped."""

class AdapterBusyError(ProctorError):
    """A frame was submitted to an adapter that still has a call outstanding."""

class UnsupportedEnvironment(ProctorError):
    """A required capture or speech capability is not available on this machine."""
