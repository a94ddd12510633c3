# vision_proctor/proctor_engine/session/session.py
import asyncio
import logging
from contextlib import ExitStack
from typing import Callable, Dict, Optional, Tuple
from ..alerts.alert_manager import AlertManager
from ..common.config import ClassifierConfig, ProctorConfig
from ..common.enums import AdapterKind, AlertSeverity, GazeVerdict, PostureVerdict, SessionState
from ..common.errors import InferenceError, InitError, UnsupportedEnvironment
from ..common.models import Alert, FaceResult, PoseResult, SessionSnapshot
from ..processing.adapters import LandmarkAdapter
from ..processing.classifiers import classify_gaze, classify_posture
from ..processing.frame_scheduler import FrameScheduler

logger = logging.getLogger(__name__)

POSTURE_ALERT = "POSTURE: LOW CONFIDENCE - Sit upright"
GAZE_ALERT = "MAINTAIN EYE CONTACT - Look at the camera"
INIT_FAILED_ALERT = "Failed to initialize vision models"
CAMERA_UNAVAILABLE_ALERT = "Camera is not available"
CAMERA_READ_ALERT = "Camera feed interrupted"

class ProctorSession:
    """Lifecycle owner for one monitored subject.

    IDLE -> LOADING -> ACTIVE -> STOPPED, with LOADING -> IDLE when a model fails
    to load. STOPPED behaves like IDLE: start() may be called again. Out-of-order
    start()/stop() calls are no-ops. The session exclusively owns the capture
    source, both adapters and the frame scheduler for as long as it is running.
    """

    def __init__(self, source, pose_adapter_factory: Callable[[], LandmarkAdapter],
                 face_adapter_factory: Callable[[], LandmarkAdapter],
                 alert_manager: Optional[AlertManager] = None,
                 classifier_config: Optional[ClassifierConfig] = None):
        self._source = source
        self._factories = {
            AdapterKind.POSE: pose_adapter_factory,
            AdapterKind.FACE: face_adapter_factory,
        }
        self.alert_manager = alert_manager if alert_manager is not None else AlertManager()
        self.classifier_config = classifier_config if classifier_config is not None else ClassifierConfig()

        self._state = SessionState.IDLE
        self._posture = PostureVerdict.UNKNOWN
        self._gaze = GazeVerdict.UNKNOWN
        self._last_pose: Optional[PoseResult] = None
        self._adapters: Dict[AdapterKind, LandmarkAdapter] = {}
        self._scheduler: Optional[FrameScheduler] = None
        self._lifecycle_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: ProctorConfig, source, pose_adapter_factory, face_adapter_factory):
        alert_manager = AlertManager(
            ttl_ms=config.alerts.ttl_ms,
            suppress_duplicates=config.alerts.suppress_duplicates,
        )
        return cls(source, pose_adapter_factory, face_adapter_factory,
                   alert_manager=alert_manager, classifier_config=config.classifier)

    @property
    def status(self) -> SessionState:
        return self._state

    @property
    def posture(self) -> PostureVerdict:
        return self._posture

    @property
    def gaze(self) -> GazeVerdict:
        return self._gaze

    @property
    def alerts(self) -> Tuple[Alert, ...]:
        return self.alert_manager.alerts

    @property
    def scheduler(self) -> Optional[FrameScheduler]:
        return self._scheduler

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            status=self._state,
            posture=self._posture,
            gaze=self._gaze,
            alerts=list(self.alerts),
            last_pose=self._last_pose,
        )

    async def start(self) -> bool:
        """Loads both models and starts the frame loop. Returns True once ACTIVE."""
        if self._state not in (SessionState.IDLE, SessionState.STOPPED):
            logger.debug("start() ignored in state %s", self._state.value)
            return False
        self._state = SessionState.LOADING
        logger.info("Session loading.")

        async with self._lifecycle_lock:
            try:
                await asyncio.to_thread(self._source.open)
            except UnsupportedEnvironment as e:
                logger.error("Session cannot start: %s", e)
                self.alert_manager.post(CAMERA_UNAVAILABLE_ALERT, AlertSeverity.ERROR, tag="UNSUPPORTED_ENVIRONMENT")
                self._state = SessionState.IDLE
                return False
            except BaseException:
                self._state = SessionState.IDLE
                raise

            try:
                for kind, factory in self._factories.items():
                    self._adapters[kind] = factory()
                for adapter in self._adapters.values():
                    await asyncio.to_thread(adapter.initialize)
            except InitError as e:
                logger.error("Session start failed: %s", e)
                try:
                    self._release_resources()
                finally:
                    self.alert_manager.post(INIT_FAILED_ALERT, AlertSeverity.ERROR, tag="INIT_ERROR")
                    self._state = SessionState.IDLE
                return False
            except BaseException:
                # Cancelled or crashed mid-load: still hand back every resource.
                try:
                    self._release_resources()
                finally:
                    self._state = SessionState.IDLE
                raise

            self._reset_verdicts()
            self.alert_manager.clear()
            self._scheduler = FrameScheduler(self._source, dict(self._adapters), self._on_result, self._on_failure,
                                             on_source_error=self._on_source_error)
            self._scheduler.start()
            self._state = SessionState.ACTIVE
            logger.info("Session active.")
            return True

    async def stop(self) -> bool:
        """Stops the frame loop and releases every owned resource. Returns False if nothing was running."""
        if self._state not in (SessionState.LOADING, SessionState.ACTIVE):
            return False

        async with self._lifecycle_lock:
            # A concurrent stop() or a failed start() may have won the lock first.
            if self._state not in (SessionState.LOADING, SessionState.ACTIVE):
                return False

            scheduler, self._scheduler = self._scheduler, None
            try:
                if scheduler is not None:
                    await scheduler.stop()
                self._release_resources()
            finally:
                self.alert_manager.clear()
                self._reset_verdicts()
                self._state = SessionState.STOPPED
            logger.info("Session stopped.")
            return True

    def _release_resources(self):
        adapters, self._adapters = self._adapters, {}
        # Every callback runs even if an earlier one raises.
        with ExitStack() as stack:
            stack.callback(self._source.close)
            for adapter in adapters.values():
                stack.callback(adapter.dispose)

    def _reset_verdicts(self):
        self._posture = PostureVerdict.UNKNOWN
        self._gaze = GazeVerdict.UNKNOWN
        self._last_pose = None

    def _on_result(self, kind: AdapterKind, result):
        if self._state is not SessionState.ACTIVE:
            return
        if kind is AdapterKind.POSE:
            self._apply_pose(result)
        else:
            self._apply_face(result)

    def _on_failure(self, kind: AdapterKind, error: InferenceError):
        if self._state is not SessionState.ACTIVE:
            return
        if kind is AdapterKind.POSE:
            self._posture = PostureVerdict.UNKNOWN
            self._last_pose = None
        else:
            self._gaze = GazeVerdict.UNKNOWN

    def _apply_pose(self, pose: PoseResult):
        self._last_pose = pose
        self._posture = classify_posture(pose, self.classifier_config.posture_threshold)
        if self._posture is PostureVerdict.LOW_CONFIDENCE:
            self.alert_manager.post(POSTURE_ALERT, AlertSeverity.WARNING, tag=PostureVerdict.LOW_CONFIDENCE.value)

    def _apply_face(self, face: FaceResult):
        self._gaze = classify_gaze(face, self.classifier_config.gaze_min_x, self.classifier_config.gaze_max_x)
        if self._gaze is GazeVerdict.OFF_CENTER:
            self.alert_manager.post(GAZE_ALERT, AlertSeverity.WARNING, tag=GazeVerdict.OFF_CENTER.value)

    def _on_source_error(self, error: Exception):
        if self._state is not SessionState.ACTIVE:
            return
        self._reset_verdicts()
        self.alert_manager.post(CAMERA_READ_ALERT, AlertSeverity.WARNING, tag="SOURCE_ERROR")
