# =======================================================================================
# qrcheckin/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "TokenFields", "TokenPayload", "Registration", "VerifyResult",
    "IssueTokenResponse", "BulkIssueResponse", "VerifyRequest", "VerifyResponse",
    "CheckInRequest", "CheckInResponse", "AttendanceEvent", "PollResponse",
    "ScannerStatusResponse", "ScannerActionResponse", "HealthResponse",
    "VerifyOutcome", "ErrorKind", "ScanState", "DecodeMode", "ScanFeedback",
    "VerifiedVia", "VerificationMethod", "FEEDBACK_MESSAGES", "OUTCOME_ERROR_KINDS"
]
