# =======================================================================================
# qrcheckin/utils/validators.py - Validation Helpers
# =======================================================================================
import re
from typing import Any

# Identifier charset accepted on the bare-id path (cuid/uuid/slug style ids)
_BARE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:\-]+$")


class ScanInputValidator:
    """Cheap structural checks on scanned strings and captured frames."""

    @staticmethod
    def looks_like_bare_id(value: str, min_length: int = 10, max_length: int = 50) -> bool:
        """
        True when `value` could be a plain registration id rather than a
        token payload: bounded length, no whitespace, no braces or quotes.
        """
        if not (min_length <= len(value) <= max_length):
            return False
        return bool(_BARE_ID_PATTERN.match(value))

    @staticmethod
    def frame_is_ready(frame: Any) -> bool:
        """A frame is usable once it exists and has non-zero dimensions."""
        if frame is None:
            return False
        shape = getattr(frame, "shape", None)
        if shape is not None:
            return len(shape) >= 2 and shape[0] > 0 and shape[1] > 0
        size = getattr(frame, "size", None)
        if isinstance(size, tuple) and len(size) == 2:
            return size[0] > 0 and size[1] > 0
        return False
