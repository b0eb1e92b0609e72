# =======================================================================================
# qrcheckin/services/token_verifier.py - Token Verification
# =======================================================================================
import logging
from typing import Optional
from .registration_store import RegistrationStore
from .token_codec import TokenCodec
from ..models.enums import VerifyOutcome
from ..models.schemas import Registration, TokenPayload, VerifyResult
from ..utils.exceptions import TokenParseError
from ..utils.validators import ScanInputValidator

logger = logging.getLogger(__name__)

# Identity fields that must still match the stored record
CROSS_CHECK_FIELDS = ("full_name", "gender", "phone_number", "email_address")


class TokenVerifier:
    """Resolves scanned strings back to registrations."""

    def __init__(self, store: RegistrationStore, codec: TokenCodec, allow_simple_id: bool = True,
                 simple_id_min_length: int = 10, simple_id_max_length: int = 50):
        self.store = store
        self.codec = codec
        self.allow_simple_id = allow_simple_id
        self.simple_id_min_length = simple_id_min_length
        self.simple_id_max_length = simple_id_max_length

    def _is_bare_id(self, value: str) -> bool:
        return self.allow_simple_id and ScanInputValidator.looks_like_bare_id(
            value, self.simple_id_min_length, self.simple_id_max_length
        )

    def embedded_id(self, scanned: str) -> Optional[str]:
        """The registration id a scanned string claims, without touching the store."""
        cleaned = (scanned or "").strip()
        if not cleaned:
            return None
        try:
            return self.codec.decode(cleaned).id
        except TokenParseError:
            return cleaned if self._is_bare_id(cleaned) else None

    def verify(self, scanned: str) -> VerifyResult:
        cleaned = (scanned or "").strip()
        logger.info("QR verification attempt (length=%d, preview=%r)", len(cleaned), cleaned[:50])

        if not cleaned:
            return VerifyResult(outcome=VerifyOutcome.PARSE_FAILURE, message="Empty QR code data")

        try:
            payload = self.codec.decode(cleaned)
        except TokenParseError as e:
            if self._is_bare_id(cleaned):
                return self._verify_simple_id(cleaned)
            logger.warning("QR payload rejected: %s", e)
            return VerifyResult(outcome=VerifyOutcome.PARSE_FAILURE, message=str(e))

        if not self.codec.verify_checksum(payload):
            logger.warning("QR integrity check failed for registration %s", payload.id)
            return VerifyResult(outcome=VerifyOutcome.INTEGRITY_FAILURE,
                                message="QR code integrity check failed")

        registration = self.store.get_registration(payload.id)
        if registration is None:
            logger.warning("QR references unknown registration %s", payload.id)
            return VerifyResult(outcome=VerifyOutcome.NOT_FOUND, message="Registration not found")

        if not self._fields_match(registration, payload):
            logger.warning("QR data no longer matches registration %s", payload.id)
            return VerifyResult(outcome=VerifyOutcome.FIELD_MISMATCH,
                                message="Registration data mismatch")

        logger.info("QR code verified for registration %s (%s)", registration.id, registration.full_name)
        return VerifyResult(outcome=VerifyOutcome.SUCCESS, message="QR code verified",
                            registration=registration, via="token")

    @staticmethod
    def _fields_match(registration: Registration, payload: TokenPayload) -> bool:
        return all(getattr(registration, name) == getattr(payload, name) for name in CROSS_CHECK_FIELDS)

    def _verify_simple_id(self, registration_id: str) -> VerifyResult:
        # legacy path: bare id, no checksum to check
        logger.info("Attempting simple registration ID verification for %s", registration_id)
        registration = self.store.get_registration(registration_id)
        if registration is None:
            logger.warning("Registration not found for simple ID %s", registration_id)
            return VerifyResult(outcome=VerifyOutcome.NOT_FOUND, message="Registration not found")

        logger.info("Simple registration ID verified for %s (%s)", registration_id, registration.full_name)
        return VerifyResult(outcome=VerifyOutcome.SUCCESS, message="Registration ID verified",
                            registration=registration, via="simple_id")
