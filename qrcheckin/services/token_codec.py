# =======================================================================================
# qrcheckin/services/token_codec.py - Token Payload Codec
# =======================================================================================
"""
Serialization and integrity check for registration tokens.

The checksum is additive: the UTF-16 code units of
``id:fullName:gender:dateOfBirth:phoneNumber:emailAddress:issuedAt:secret``
are summed and the total is written in upper-case base 36. It catches
corrupted or naively edited payloads; it is not a MAC and a motivated forger
who knows the scheme can produce matching sums. The algorithm is kept as-is so
tokens already printed and mailed keep verifying.
"""
import json
from typing import Any
from pydantic import ValidationError
from ..models.schemas import TokenFields, TokenPayload
from ..utils.exceptions import TokenParseError

_BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def utf16_code_unit_sum(text: str) -> int:
    """Sum of UTF-16 code units, matching how browsers index strings."""
    raw = text.encode("utf-16-le")
    return sum(int.from_bytes(raw[i:i + 2], "little") for i in range(0, len(raw), 2))


class TokenCodec:
    """Builds, parses and checks token payload strings."""

    def __init__(self, secret: str):
        self.secret = secret

    def canonical_string(self, fields: TokenFields, issued_at: int) -> str:
        return ":".join([
            fields.id,
            fields.full_name,
            fields.gender,
            fields.date_of_birth,
            fields.phone_number,
            fields.email_address,
            str(issued_at),
            self.secret,
        ])

    def compute_checksum(self, fields: TokenFields, issued_at: int) -> str:
        return to_base36(utf16_code_unit_sum(self.canonical_string(fields, issued_at)))

    def encode(self, fields: TokenFields, issued_at: int) -> str:
        """Serialize `fields` stamped with `issued_at` into a payload string."""
        payload = TokenPayload(
            **fields.model_dump(),
            issued_at=issued_at,
            checksum=self.compute_checksum(fields, issued_at),
        )
        return json.dumps(payload.model_dump(by_alias=True), separators=(",", ":"), ensure_ascii=False)

    def decode(self, payload: str) -> TokenPayload:
        """Parse a payload string. Raises TokenParseError when malformed."""
        try:
            data: Any = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise TokenParseError(f"Invalid QR code format - not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise TokenParseError("Invalid QR code format - payload is not an object")

        try:
            return TokenPayload.model_validate(data)
        except ValidationError as e:
            missing = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc") and err["type"] == "missing"})
            if missing:
                raise TokenParseError(f"QR code missing required registration data: {', '.join(missing)}") from e
            invalid = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise TokenParseError(f"QR code has invalid registration data: {', '.join(invalid)}") from e

    def verify_checksum(self, payload: TokenPayload) -> bool:
        return payload.checksum == self.compute_checksum(payload, payload.issued_at)

