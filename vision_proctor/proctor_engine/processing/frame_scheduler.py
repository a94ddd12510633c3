# vision_proctor/proctor_engine/processing/frame_scheduler.py
import asyncio
import logging
from typing import Callable, Dict, Optional, Set
from ..common.enums import AdapterKind
from ..common.errors import InferenceError
from ..common.models import FrameSample
from .adapters import LandmarkAdapter

logger = logging.getLogger(__name__)

class FrameScheduler:
    """Drives the capture -> inference -> routing cycle on the running event loop.

    Each tick reads the newest frame from the capture source and hands it to
    every adapter that is idle and has not seen that frame yet. Adapters run as
    independent tasks, so a slow pose model never holds back face detection,
    but a single adapter never has two frames outstanding.

    Results are routed through on_result(kind, result); per-frame inference
    failures go to on_failure(kind, error) and never stop the loop. A capture
    source that raises while being read is reported to on_source_error(error)
    and polled again on the next tick. Anything that completes after stop() is
    discarded.
    """

    def __init__(self, source, adapters: Dict[AdapterKind, LandmarkAdapter],
                 on_result: Callable, on_failure: Callable,
                 on_source_error: Optional[Callable] = None):
        self._source = source
        self._adapters = adapters
        self._on_result = on_result
        self._on_failure = on_failure
        self._on_source_error = on_source_error

        self.running = False
        self.adapter_busy = {kind: False for kind in adapters}
        self._last_frame_id: Dict[AdapterKind, Optional[int]] = {kind: None for kind in adapters}
        self._loop_task: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self.frames_dispatched = 0
        self.frames_failed = 0
        self.source_errors = 0

    def start(self):
        if self.running:
            return
        self.running = True
        self._loop_task = asyncio.create_task(self._run())

    def request_stop(self):
        """Flags the loop to exit at its next tick without waiting."""
        self.running = False

    async def stop(self):
        """Stops the loop and waits for in-flight submits to finish. Safe to call repeatedly."""
        self.running = False
        task, self._loop_task = self._loop_task, None
        if task is not None:
            outcome, = await asyncio.gather(task, return_exceptions=True)
            if isinstance(outcome, Exception):
                logger.error("Frame loop terminated with an error: %s", outcome)
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        if task is not None:
            logger.info("Frame loop stopped: %d frames dispatched, %d failed, %d source errors.",
                        self.frames_dispatched, self.frames_failed, self.source_errors)

    async def _run(self):
        while self.running:
            try:
                self._tick()
            except Exception as e:
                self.source_errors += 1
                logger.warning("Capture source read failed: %s", e)
                if self._on_source_error is not None:
                    self._on_source_error(e)
            # Pace to the capture rate; newer frames replace older ones in the source.
            await asyncio.sleep(self._source.frame_interval)

    def _tick(self):
        if not self._source.is_frame_ready():
            return
        frame = self._source.get_frame()
        if frame is None:
            return

        for kind, adapter in self._adapters.items():
            if self.adapter_busy[kind] or self._last_frame_id[kind] == frame.frame_id:
                continue
            self._dispatch(kind, adapter, frame)

    def _dispatch(self, kind: AdapterKind, adapter: LandmarkAdapter, frame: FrameSample):
        self.adapter_busy[kind] = True
        self._last_frame_id[kind] = frame.frame_id
        self.frames_dispatched += 1
        task = asyncio.create_task(self._submit(kind, adapter, frame))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _submit(self, kind: AdapterKind, adapter: LandmarkAdapter, frame: FrameSample):
        try:
            result = await adapter.submit(frame)
        except InferenceError as e:
            self.frames_failed += 1
            logger.debug("Skipping frame %d for %s: %s", frame.frame_id, kind.value, e)
            if self.running:
                self._on_failure(kind, e)
            return
        finally:
            self.adapter_busy[kind] = False

        if self.running:
            self._on_result(kind, result)
