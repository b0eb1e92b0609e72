# =======================================================================================
# qrcheckin/container.py - Service Wiring
# =======================================================================================
import logging
from typing import Callable, Optional
from .config import Config, config as default_config
from .database import DatabaseManager
from .services.attendance_service import AttendanceService
from .services.broadcaster import AttendanceBroadcaster, BroadcastingSessionEvents
from .services.camera import open_camera
from .services.capture_pipeline import CapturePipeline, build_decode_tiers, build_feedback_schedule
from .services.qr_decoder import DecodePrimitive, load_decoder
from .services.registration_store import RegistrationStore, SqlRegistrationStore
from .services.scan_session import CameraFactory, ScanSessionController
from .services.token_codec import TokenCodec
from .services.token_issuer import TokenIssuer
from .services.token_renderer import TokenRenderer
from .services.token_verifier import TokenVerifier
from .workers.scanner_worker import ScannerWorker

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Explicitly constructed set of services for one application instance.

    Nothing here is a module-level singleton: `create_app()` builds one
    container, tests build their own with fakes.
    """

    def __init__(self, settings: Optional[Config] = None, store: Optional[RegistrationStore] = None,
                 db: Optional[DatabaseManager] = None, camera_factory: Optional[CameraFactory] = None,
                 decoder_loader: Callable[[], DecodePrimitive] = load_decoder):
        self.settings = settings or default_config
        s = self.settings

        if store is None:
            db = db or DatabaseManager(s)
            store = SqlRegistrationStore(db)
        self.db = db
        self.store = store

        self.codec = TokenCodec(s.QR_SECRET_KEY)
        self.renderer = TokenRenderer(s.QR_ERROR_CORRECTION, s.QR_BOX_SIZE, s.QR_BORDER)
        self.issuer = TokenIssuer(self.store, self.codec, self.renderer)
        self.verifier = TokenVerifier(
            self.store, self.codec,
            allow_simple_id=s.SIMPLE_ID_FALLBACK,
            simple_id_min_length=s.SIMPLE_ID_MIN_LENGTH,
            simple_id_max_length=s.SIMPLE_ID_MAX_LENGTH,
        )
        self.broadcaster = AttendanceBroadcaster()
        self.attendance = AttendanceService(self.store, self.verifier, self.issuer, self.broadcaster)

        pipeline = CapturePipeline(
            decoder_loader=decoder_loader,
            tiers=build_decode_tiers(s.SCAN_TIER_UPRIGHT_MAX, s.SCAN_TIER_INVERTED_MAX),
            feedback_schedule=build_feedback_schedule(s.SCAN_FEEDBACK_THRESHOLDS),
            max_frame_dim=s.SCAN_MAX_FRAME_DIM,
        )
        controller = ScanSessionController(
            pipeline,
            self.verifier,
            camera_factory or (lambda: open_camera(s.CAMERA_INDEX)),
            events=BroadcastingSessionEvents(self.broadcaster, self.attendance, s.SCANNER_DEVICE_NAME),
            cooldown_s=s.SCAN_COOLDOWN_MS / 1000.0,
        )
        self.scanner = ScannerWorker(controller, interval_s=s.SCAN_INTERVAL_MS / 1000.0)

    def startup(self) -> None:
        if isinstance(self.store, SqlRegistrationStore):
            try:
                self.store.ensure_schema()
            except Exception:
                logger.exception("Could not ensure registrations schema; health check will report it")

    def shutdown(self) -> None:
        self.scanner.stop()
        if self.db is not None:
            self.db.dispose()
