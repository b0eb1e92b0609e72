# =======================================================================================
# qrcheckin/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class QRCheckInError(Exception):
    """Base exception for the QR check-in system."""
    pass

class TokenParseError(QRCheckInError):
    """Raised when a scanned string is not a well-formed token payload."""
    pass

class RegistrationNotFoundError(QRCheckInError):
    """Raised when a registration id is unknown to the store."""

    def __init__(self, registration_id: str):
        super().__init__(f"Registration not found: {registration_id}")
        self.registration_id = registration_id

class CameraAccessError(QRCheckInError):
    """Raised when the camera cannot be opened or stops delivering frames."""
    pass

class LibraryUnavailableError(QRCheckInError):
    """Raised when the QR decode primitive cannot be loaded."""
    pass

class InvalidImageError(QRCheckInError):
    """Raised when uploaded bytes cannot be read as an image."""
    pass
