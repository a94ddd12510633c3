# vision_proctor/proctor_engine/processing/adapters.py
import asyncio
import logging
from abc import ABC, abstractmethod
from ..common.enums import AdapterKind
from ..common.errors import AdapterBusyError, InferenceError, InitError
from ..common.models import FrameSample

logger = logging.getLogger(__name__)

class LandmarkAdapter(ABC):
    """Wraps one stateful inference collaborator behind initialize/submit/dispose.

    The wrapped model holds mutable state between frames, so at most one submit
    may be outstanding at a time. Subclasses implement _load, _process and
    _release; _process runs in a worker thread so the event loop keeps moving.
    """

    kind: AdapterKind

    def __init__(self):
        self._ready = False
        self._in_flight = False
        self._disposed = False

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def busy(self) -> bool:
        return self._in_flight

    @property
    def disposed(self) -> bool:
        return self._disposed

    def initialize(self):
        """Loads the model. Blocking; raises InitError on any failure."""
        if self._ready:
            return
        if self._disposed:
            raise InitError(f"{self.kind.value} adapter was already disposed.")
        try:
            self._load()
        except InitError:
            raise
        except Exception as e:
            raise InitError(f"{self.kind.value} adapter failed to initialize: {e}") from e
        self._ready = True
        logger.info("%s adapter initialized.", self.kind.value)

    async def submit(self, frame: FrameSample):
        if not self._ready:
            raise InferenceError(f"{self.kind.value} adapter is not initialized.")
        if self._in_flight:
            raise AdapterBusyError(f"{self.kind.value} adapter already has a frame in flight.")

        self._in_flight = True
        try:
            return await self._infer(frame)
        finally:
            self._in_flight = False

    async def _infer(self, frame: FrameSample):
        try:
            return await asyncio.to_thread(self._process, frame)
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"{self.kind.value} inference failed on frame {frame.frame_id}: {e}") from e

    def dispose(self):
        """Releases native resources. Safe to call repeatedly and after a failed initialize."""
        if self._disposed:
            return
        self._disposed = True
        self._ready = False
        self._release()
        logger.info("%s adapter disposed.", self.kind.value)

    @abstractmethod
    def _load(self):
        ...

    @abstractmethod
    def _process(self, frame: FrameSample):
        ...

    @abstractmethod
    def _release(self):
        ...
