# =======================================================================================
# qrcheckin/services/__init__.py - Services Package
# =======================================================================================
from .token_codec import TokenCodec
from .token_renderer import TokenRenderer
from .token_issuer import TokenIssuer, IssuedToken, BulkIssueSummary
from .token_verifier import TokenVerifier
from .registration_store import RegistrationStore, SqlRegistrationStore, InMemoryRegistrationStore
from .capture_pipeline import CapturePipeline, DecodeTier, build_decode_tiers, build_feedback_schedule
from .qr_decoder import DecodedSymbol, OpenCvQrDecoder, load_decoder
from .camera import CameraHandle, OpenCvCamera, open_camera
from .scan_session import ScanSessionController, SessionEvents, NullSessionEvents
from .broadcaster import AttendanceBroadcaster, BroadcastingSessionEvents
from .attendance_service import AttendanceService, CheckInResult

__all__ = [
    "TokenCodec", "TokenRenderer", "TokenIssuer", "IssuedToken", "BulkIssueSummary",
    "TokenVerifier", "RegistrationStore", "SqlRegistrationStore", "InMemoryRegistrationStore",
    "CapturePipeline", "DecodeTier", "build_decode_tiers", "build_feedback_schedule",
    "DecodedSymbol", "OpenCvQrDecoder", "load_decoder", "CameraHandle", "OpenCvCamera",
    "open_camera", "ScanSessionController", "SessionEvents", "NullSessionEvents",
    "AttendanceBroadcaster", "BroadcastingSessionEvents", "AttendanceService", "CheckInResult"
]
