# =======================================================================================
# qrcheckin/services/qr_decoder.py - QR Decode Primitive
# =======================================================================================
import importlib
import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol
import numpy as np
from ..models.enums import DecodeMode
from ..utils.exceptions import LibraryUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedSymbol:
    data: str


class DecodePrimitive(Protocol):
    """decode(pixels, width, height, mode) -> DecodedSymbol | None"""

    def __call__(self, pixels: np.ndarray, width: int, height: int,
                 mode: DecodeMode) -> Optional[DecodedSymbol]:
        ...


class OpenCvQrDecoder:
    """Decode primitive on top of OpenCV's QRCodeDetector."""

    def __init__(self, cv2_module):
        self._cv2 = cv2_module
        self._detector = cv2_module.QRCodeDetector()

    @staticmethod
    def _candidates(buffer: np.ndarray, mode: DecodeMode) -> Iterator[np.ndarray]:
        if mode in (DecodeMode.UPRIGHT, DecodeMode.BOTH):
            yield buffer
        if mode in (DecodeMode.INVERTED, DecodeMode.BOTH):
            yield 255 - buffer

    def __call__(self, pixels: np.ndarray, width: int, height: int,
                 mode: DecodeMode) -> Optional[DecodedSymbol]:
        buffer = np.ascontiguousarray(pixels, dtype=np.uint8).reshape((height, width))
        for candidate in self._candidates(buffer, mode):
            try:
                data, _, _ = self._detector.detectAndDecode(candidate)
            except self._cv2.error as e:
                # a frame OpenCV cannot make sense of is just a miss
                logger.debug("QR detector rejected frame: %s", e)
                continue
            if data:
                return DecodedSymbol(data=data.strip())
        return None


def load_decoder() -> DecodePrimitive:
    """Load the default decode primitive. Raises LibraryUnavailableError."""
    try:
        cv2 = importlib.import_module("cv2")
    except ImportError as e:
        raise LibraryUnavailableError(
            "QR scanning library not available - install opencv-python-headless "
            "or use manual verification"
        ) from e
    return OpenCvQrDecoder(cv2)
