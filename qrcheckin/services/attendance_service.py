# =======================================================================================
# qrcheckin/services/attendance_service.py - Attendance Check-In
# =======================================================================================
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from .broadcaster import AttendanceBroadcaster, utcnow
from .registration_store import RegistrationStore
from .token_issuer import TokenIssuer
from .token_verifier import TokenVerifier
from ..models.enums import VerificationMethod
from ..models.schemas import Registration, VerifyResult

logger = logging.getLogger(__name__)


@dataclass
class CheckInResult:
    verification: VerifyResult
    already_verified: bool = False
    registration: Optional[Registration] = None

    @property
    def success(self) -> bool:
        return self.verification.success and not self.already_verified


class AttendanceService:
    """Marks verified registrants as present and announces it."""

    def __init__(self, store: RegistrationStore, verifier: TokenVerifier, issuer: TokenIssuer,
                 broadcaster: AttendanceBroadcaster, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.verifier = verifier
        self.issuer = issuer
        self.broadcaster = broadcaster
        self.clock = clock

    def record(self, registration_id: str, full_name: str, method: VerificationMethod,
               device: Optional[str] = None, operator: Optional[str] = None) -> bool:
        """
        Mark `registration_id` as attended. Returns False (and broadcasts
        ``already_verified``) when it was checked in before.
        """
        marked = self.store.mark_attendance(registration_id, method, device, operator, self.clock())
        if not marked:
            logger.info("Registration %s already verified; check-in ignored", registration_id)
            self.broadcaster.publish("already_verified", {"registrationId": registration_id, "fullName": full_name})
            return False

        logger.info("Attendance verified for %s (%s) via %s on %s", registration_id, full_name,
                    method, device or "unknown device")
        self._refresh_token(registration_id)
        self.broadcaster.publish("verification", {
            "registrationId": registration_id,
            "fullName": full_name,
            "method": method,
            "scannerName": device,
            "operatorId": operator,
        })
        return True

    def check_in(self, scanned: str, method: VerificationMethod = "qr_scan", device: Optional[str] = None,
                 operator: Optional[str] = None) -> CheckInResult:
        """Verify a scanned string and record attendance for its registration."""
        verification = self.verifier.verify(scanned)
        if not verification.success:
            return CheckInResult(verification=verification)

        registration = verification.registration
        marked = self.record(registration.id, registration.full_name, method, device, operator)
        return CheckInResult(
            verification=verification,
            already_verified=not marked,
            registration=self.store.get_registration(registration.id) or registration,
        )

    def _refresh_token(self, registration_id: str) -> None:
        # a fresh token after check-in; failure here must not undo the check-in
        try:
            self.issuer.issue(registration_id)
        except Exception:
            logger.exception("Failed to re-issue QR token after check-in for %s", registration_id)
