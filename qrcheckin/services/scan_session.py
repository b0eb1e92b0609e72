# =======================================================================================
# qrcheckin/services/scan_session.py - Scan Session Controller
# =======================================================================================
"""
State machine that owns one scanning session.

    IDLE -> CAPTURING -> PROCESSING -> COOLDOWN -> CAPTURING ...
    any state -> CLOSED
    CAPTURING / PROCESSING -> CAMERA_ERROR | LIBRARY_ERROR (restart required)

The controller never spawns threads and never sleeps. The host calls
``tick()`` from its timer; cooldowns are measured with the injected clock and
the camera comes from the injected factory, so the whole loop runs under test
without hardware. Host calls are serialized by a re-entrant lock, which also
lets a callback close the session from inside a verification.
"""
import logging
import threading
import time
from typing import Callable, Optional, Protocol
from .camera import CameraHandle
from .capture_pipeline import CapturePipeline
from .token_verifier import TokenVerifier
from ..models.enums import FEEDBACK_MESSAGES, OUTCOME_ERROR_KINDS, ErrorKind, ScanFeedback, ScanState
from ..models.schemas import VerifyResult
from ..utils.exceptions import CameraAccessError, InvalidImageError, LibraryUnavailableError

logger = logging.getLogger(__name__)

CameraFactory = Callable[[], CameraHandle]

ACTIVE_STATES = (ScanState.CAPTURING, ScanState.PROCESSING, ScanState.COOLDOWN)


class SessionEvents(Protocol):
    """What the host UI / real-time broadcaster receives."""

    def on_scanned(self, registration_id: str, full_name: str) -> None:
        ...

    def on_error(self, kind: ErrorKind, message: str) -> None:
        ...

    def on_status_change(self, state: ScanState) -> None:
        ...

    def on_feedback(self, hint: ScanFeedback, message: str) -> None:
        ...


class NullSessionEvents:
    """No-op event sink."""

    def on_scanned(self, registration_id: str, full_name: str) -> None:
        return

    def on_error(self, kind: ErrorKind, message: str) -> None:
        return

    def on_status_change(self, state: ScanState) -> None:
        return

    def on_feedback(self, hint: ScanFeedback, message: str) -> None:
        return


class ScanSessionController:
    def __init__(self, pipeline: CapturePipeline, verifier: TokenVerifier,
                 camera_factory: CameraFactory, events: Optional[SessionEvents] = None,
                 clock: Callable[[], float] = time.monotonic, cooldown_s: float = 2.0):
        self.pipeline = pipeline
        self.verifier = verifier
        self.camera_factory = camera_factory
        self.events = events or NullSessionEvents()
        self.clock = clock
        self.cooldown_s = cooldown_s

        self._lock = threading.RLock()
        self._state = ScanState.IDLE
        self._camera: Optional[CameraHandle] = None
        self._last_accepted_id: Optional[str] = None
        self._cooldown_until: Optional[float] = None
        self._generation = 0
        self._busy = False

        self.pipeline.on_feedback = self._relay_feedback

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def last_accepted_id(self) -> Optional[str]:
        return self._last_accepted_id

    @property
    def attempts(self) -> int:
        return self.pipeline.attempts

    @property
    def holds_camera(self) -> bool:
        return self._camera is not None

    # ------------------------------------------------------------------
    # Host operations
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """Acquire the camera and begin capturing. False when acquisition failed."""
        with self._lock:
            if self._state in ACTIVE_STATES:
                return True

            self._generation += 1
            self._last_accepted_id = None
            self._cooldown_until = None
            self.pipeline.reset()

            camera: Optional[CameraHandle] = None
            try:
                camera = self.camera_factory()
                if camera is None:
                    raise CameraAccessError("No camera available")
                # first read doubles as the permission / hardware probe
                camera.read()
            except LibraryUnavailableError as e:
                self._release(camera)
                self._fail(ScanState.LIBRARY_ERROR, ErrorKind.LIBRARY_UNAVAILABLE, str(e))
                return False
            except Exception as e:
                self._release(camera)
                logger.warning("Camera acquisition failed: %s", e)
                self._fail(ScanState.CAMERA_ERROR, ErrorKind.CAMERA_ACCESS, str(e) or "Unable to access camera")
                return False

            self._camera = camera
            logger.info("Scan session started")
            self._set_state(ScanState.CAPTURING)
            return True

    def tick(self) -> None:
        """Timer callback: leave cooldown when due, then try one capture."""
        with self._lock:
            if self._busy:
                return
            if self._state == ScanState.COOLDOWN:
                if self._cooldown_until is not None and self.clock() < self._cooldown_until:
                    return
                self._resume_capturing()
            if self._state != ScanState.CAPTURING:
                return
            self._capture_and_process()

    def manual_scan(self) -> Optional[VerifyResult]:
        """Capture and process one frame now, independent of the timer."""
        with self._lock:
            if self._state != ScanState.CAPTURING or self._busy:
                return None
            return self._capture_and_process()

    def upload_image(self, data: bytes) -> Optional[VerifyResult]:
        """Decode a still image and run it through verification."""
        with self._lock:
            if self._state == ScanState.CLOSED:
                logger.warning("Image upload ignored: scan session is closed")
                return None
            if self._busy:
                return None

            try:
                scanned = self.pipeline.decode_image(data)
            except InvalidImageError as e:
                self._notify(self.events.on_error, ErrorKind.INVALID_IMAGE, str(e))
                return None
            except LibraryUnavailableError as e:
                self._notify(self.events.on_error, ErrorKind.LIBRARY_UNAVAILABLE, str(e))
                return None

            if scanned is None:
                self._notify(self.events.on_feedback, ScanFeedback.NO_SYMBOL, FEEDBACK_MESSAGES[ScanFeedback.NO_SYMBOL])
                return None
            return self._process(scanned, from_camera=False)

    def close(self) -> None:
        """Stop scanning and release the camera. Safe to call repeatedly."""
        with self._lock:
            if self._state == ScanState.CLOSED and self._camera is None:
                return
            self._generation += 1
            self._release(self._camera)
            self._camera = None
            self._last_accepted_id = None
            self._cooldown_until = None
            self.pipeline.reset()
            logger.info("Scan session closed")
            self._set_state(ScanState.CLOSED)

    def __enter__(self) -> "ScanSessionController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _set_state(self, state: ScanState) -> None:
        if state == self._state:
            return
        logger.debug("Scan session %s -> %s", self._state.value, state.value)
        self._state = state
        self._notify(self.events.on_status_change, state)

    def _release(self, camera: Optional[CameraHandle]) -> None:
        if camera is None:
            return
        try:
            camera.release()
        except Exception:
            logger.exception("Camera release failed")

    def _fail(self, state: ScanState, kind: ErrorKind, message: str) -> None:
        self._release(self._camera)
        self._camera = None
        self._set_state(state)
        self._notify(self.events.on_error, kind, message)

    def _notify(self, callback: Callable[..., None], *args) -> None:
        # a failing event sink must not stall the session
        try:
            callback(*args)
        except Exception:
            logger.exception("Session event handler %s failed", getattr(callback, "__name__", callback))

    def _resume_capturing(self) -> None:
        self._cooldown_until = None
        self.pipeline.reset()
        self._set_state(ScanState.CAPTURING)

    def _enter_cooldown(self) -> None:
        self._cooldown_until = self.clock() + self.cooldown_s
        self._set_state(ScanState.COOLDOWN)

    def _relay_feedback(self, hint: ScanFeedback, message: str) -> None:
        self._notify(self.events.on_feedback, hint, message)

    def _capture_and_process(self) -> Optional[VerifyResult]:
        try:
            scanned = self.pipeline.capture_once(self._camera)
        except LibraryUnavailableError as e:
            self._fail(ScanState.LIBRARY_ERROR, ErrorKind.LIBRARY_UNAVAILABLE, str(e))
            return None
        except CameraAccessError as e:
            logger.error("Camera frame capture failed: %s", e)
            self._fail(ScanState.CAMERA_ERROR, ErrorKind.CAMERA_ACCESS, str(e))
            return None
        except Exception as e:
            logger.exception("QR decode failed")
            self._notify(self.events.on_error, ErrorKind.INTERNAL, f"Failed to decode frame: {e}")
            self._enter_cooldown()
            return None

        if scanned is None:
            return None
        self._set_state(ScanState.PROCESSING)
        return self._process(scanned, from_camera=True)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state != ScanState.CLOSED

    def _process(self, scanned: str, from_camera: bool) -> Optional[VerifyResult]:
        generation = self._generation
        result: Optional[VerifyResult] = None
        self._busy = True
        try:
            claimed_id = self.verifier.embedded_id(scanned)
            if claimed_id is not None and claimed_id == self._last_accepted_id:
                logger.info("Duplicate scan of registration %s suppressed", claimed_id)
                self._notify(self.events.on_error, ErrorKind.DUPLICATE_SCAN, "This QR code was already scanned recently")
            else:
                try:
                    result = self.verifier.verify(scanned)
                except Exception as e:
                    logger.exception("QR verification raised unexpectedly")
                    if self._is_current(generation):
                        self._notify(self.events.on_error, ErrorKind.INTERNAL, f"Failed to verify QR code: {e}")
                else:
                    self._deliver(result, generation)
        finally:
            self._busy = False
            if from_camera and self._is_current(generation):
                self._enter_cooldown()
        return result if self._is_current(generation) else None

    def _deliver(self, result: VerifyResult, generation: int) -> None:
        if not self._is_current(generation):
            logger.info("Verification result dropped: session closed while processing")
            return
        if result.success:
            registration = result.registration
            self._last_accepted_id = registration.id
            self._notify(self.events.on_scanned, registration.id, registration.full_name)
        else:
            self._notify(self.events.on_error, OUTCOME_ERROR_KINDS[result.outcome], result.message)
