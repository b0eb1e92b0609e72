# =======================================================================================
# qrcheckin/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
VerifiedVia = Literal["token", "simple_id"]
VerificationMethod = Literal["qr_scan", "station_scan", "external_scanner"]

class VerifyOutcome(str, Enum):
    """Typed outcomes of token verification."""
    SUCCESS = "SUCCESS"
    PARSE_FAILURE = "PARSE_FAILURE"
    INTEGRITY_FAILURE = "INTEGRITY_FAILURE"
    NOT_FOUND = "NOT_FOUND"
    FIELD_MISMATCH = "FIELD_MISMATCH"

class ErrorKind(str, Enum):
    """Error kinds surfaced to the host UI through on_error."""
    PARSE_FAILURE = "PARSE_FAILURE"
    INTEGRITY_FAILURE = "INTEGRITY_FAILURE"
    NOT_FOUND = "NOT_FOUND"
    FIELD_MISMATCH = "FIELD_MISMATCH"
    DUPLICATE_SCAN = "DUPLICATE_SCAN"
    CAMERA_ACCESS = "CAMERA_ACCESS"
    LIBRARY_UNAVAILABLE = "LIBRARY_UNAVAILABLE"
    INVALID_IMAGE = "INVALID_IMAGE"
    INTERNAL = "INTERNAL"

class ScanState(str, Enum):
    """Scan session controller states."""
    IDLE = "IDLE"
    CAPTURING = "CAPTURING"
    PROCESSING = "PROCESSING"
    COOLDOWN = "COOLDOWN"
    CLOSED = "CLOSED"
    CAMERA_ERROR = "CAMERA_ERROR"
    LIBRARY_ERROR = "LIBRARY_ERROR"

class DecodeMode(str, Enum):
    """Orientations handed to the decode primitive."""
    UPRIGHT = "upright"
    INVERTED = "inverted"
    BOTH = "both"

class ScanFeedback(str, Enum):
    """Advisory operator guidance emitted while no code is found."""
    SCANNING = "SCANNING"
    CENTER_CODE = "CENTER_CODE"
    IMPROVE_LIGHTING = "IMPROVE_LIGHTING"
    TRY_MANUAL = "TRY_MANUAL"
    NO_SYMBOL = "NO_SYMBOL"

FEEDBACK_MESSAGES = {
    ScanFeedback.SCANNING: "Scanning for QR code...",
    ScanFeedback.CENTER_CODE: "Center the QR code in the frame",
    ScanFeedback.IMPROVE_LIGHTING: "Improve lighting or hold the code steady",
    ScanFeedback.TRY_MANUAL: "Still nothing found - try a manual scan or upload an image",
    ScanFeedback.NO_SYMBOL: "No QR code detected in image",
}

# Verifier outcome -> error kind surfaced by the session controller
OUTCOME_ERROR_KINDS = {
    VerifyOutcome.PARSE_FAILURE: ErrorKind.PARSE_FAILURE,
    VerifyOutcome.INTEGRITY_FAILURE: ErrorKind.INTEGRITY_FAILURE,
    VerifyOutcome.NOT_FOUND: ErrorKind.NOT_FOUND,
    VerifyOutcome.FIELD_MISMATCH: ErrorKind.FIELD_MISMATCH,
}
