# =======================================================================================
# qrcheckin/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "QRCheckInError", "TokenParseError", "RegistrationNotFoundError",
    "CameraAccessError", "LibraryUnavailableError", "InvalidImageError",
    "ScanInputValidator"
]
