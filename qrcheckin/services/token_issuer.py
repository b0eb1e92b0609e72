# =======================================================================================
# qrcheckin/services/token_issuer.py - Token Issuance
# =======================================================================================
import logging
import time
from dataclasses import dataclass
from typing import Callable
from .registration_store import RegistrationStore
from .token_codec import TokenCodec
from .token_renderer import TokenRenderer
from ..utils.exceptions import RegistrationNotFoundError

logger = logging.getLogger(__name__)


def epoch_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class IssuedToken:
    """A freshly issued token and its PNG rendering, ready for delivery."""
    registration_id: str
    token: str
    image: bytes


@dataclass(frozen=True)
class BulkIssueSummary:
    generated: int
    errors: int


class TokenIssuer:
    """Builds a registration's canonical token and persists it on the record."""

    def __init__(self, store: RegistrationStore, codec: TokenCodec, renderer: TokenRenderer,
                 clock: Callable[[], int] = epoch_millis):
        self.store = store
        self.codec = codec
        self.renderer = renderer
        self.clock = clock

    def issue(self, registration_id: str) -> IssuedToken:
        """
        Issue a new token for `registration_id`, replacing any previous one.

        The previous token keeps a self-consistent checksum; it only stops
        verifying once the registration's identity fields change.
        """
        registration = self.store.get_registration(registration_id)
        if registration is None:
            raise RegistrationNotFoundError(registration_id)

        token = self.codec.encode(registration.token_fields(), self.clock())
        image = self.renderer.render_png(token)
        self.store.set_token(registration_id, token)

        logger.info("QR token issued for registration %s (%s)", registration_id, registration.full_name)
        return IssuedToken(registration_id=registration_id, token=token, image=image)

    def issue_missing(self) -> BulkIssueSummary:
        """Issue tokens for every registration that has none yet."""
        generated = 0
        errors = 0
        for registration_id in self.store.list_missing_tokens():
            try:
                self.issue(registration_id)
                generated += 1
            except Exception:
                errors += 1
                logger.exception("Failed to issue QR token for registration %s", registration_id)

        logger.info("Bulk QR issuance completed: generated=%d errors=%d", generated, errors)
        return BulkIssueSummary(generated=generated, errors=errors)
