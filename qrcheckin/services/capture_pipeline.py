# =======================================================================================
# qrcheckin/services/capture_pipeline.py - Optical Capture Pipeline
# =======================================================================================
"""
Turns camera frames or uploaded images into at most one decoded QR string.

Live capture escalates its decode strategy the longer it goes without a hit:
the cheap upright-only pass first, then upright followed by inverted, then
the combined mode. Both the tier boundaries and the operator feedback
thresholds are data (``DecodeTier`` list and feedback schedule) so a station
can be retuned from configuration.

A miss is the normal case and is reported as ``None``; only failure to load
the decode primitive or to read the camera raises.
"""
import io
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import numpy as np
from PIL import Image, UnidentifiedImageError
from .camera import CameraHandle
from .qr_decoder import DecodePrimitive, load_decoder
from ..models.enums import FEEDBACK_MESSAGES, DecodeMode, ScanFeedback
from ..utils.exceptions import CameraAccessError, InvalidImageError
from ..utils.validators import ScanInputValidator

logger = logging.getLogger(__name__)

FeedbackCallback = Callable[[ScanFeedback, str], None]

FEEDBACK_HINT_ORDER = (
    ScanFeedback.SCANNING,
    ScanFeedback.CENTER_CODE,
    ScanFeedback.IMPROVE_LIGHTING,
    ScanFeedback.TRY_MANUAL,
)


@dataclass(frozen=True)
class DecodeTier:
    """Modes tried, in order, for attempts up to `max_attempt` (None: no bound)."""
    max_attempt: Optional[int]
    modes: Tuple[DecodeMode, ...]


def build_decode_tiers(upright_max: int = 30, inverted_max: int = 60) -> List[DecodeTier]:
    return [
        DecodeTier(upright_max, (DecodeMode.UPRIGHT,)),
        DecodeTier(inverted_max, (DecodeMode.UPRIGHT, DecodeMode.INVERTED)),
        DecodeTier(None, (DecodeMode.BOTH,)),
    ]


def build_feedback_schedule(thresholds: Sequence[int] = (5, 20, 40, 80)) -> Dict[int, ScanFeedback]:
    return dict(zip(thresholds, FEEDBACK_HINT_ORDER))


def to_image(frame: Any) -> Image.Image:
    if isinstance(frame, Image.Image):
        return frame
    return Image.fromarray(np.asarray(frame, dtype=np.uint8))


def rasterize(image: Image.Image, max_dim: Optional[int] = None) -> np.ndarray:
    """Grayscale uint8 buffer of `image`, downscaled so neither side exceeds `max_dim`."""
    if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
        # flatten onto white, transparent pixels would otherwise read as dark
        background = Image.new("RGBA", image.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, image.convert("RGBA"))

    width, height = image.size
    if max_dim and max(width, height) > max_dim:
        scale = max_dim / float(max(width, height))
        image = image.resize((max(1, int(width * scale)), max(1, int(height * scale))), Image.Resampling.BILINEAR)

    return np.asarray(image.convert("L"), dtype=np.uint8)


class CapturePipeline:
    """Single-shot and per-frame QR decoding with escalating strategies."""

    def __init__(self, decoder_loader: Callable[[], DecodePrimitive] = load_decoder,
                 tiers: Optional[List[DecodeTier]] = None,
                 feedback_schedule: Optional[Dict[int, ScanFeedback]] = None,
                 max_frame_dim: int = 640,
                 on_feedback: Optional[FeedbackCallback] = None):
        self._decoder_loader = decoder_loader
        self._decoder: Optional[DecodePrimitive] = None
        self.tiers = tiers or build_decode_tiers()
        self.feedback_schedule = build_feedback_schedule() if feedback_schedule is None else feedback_schedule
        self.max_frame_dim = max_frame_dim
        self.on_feedback = on_feedback
        self._attempts = 0

    @property
    def attempts(self) -> int:
        return self._attempts

    def reset(self) -> None:
        self._attempts = 0

    def decoder(self) -> DecodePrimitive:
        """The decode primitive, loaded on first use."""
        if self._decoder is None:
            self._decoder = self._decoder_loader()
        return self._decoder

    def tier_for(self, attempt: int) -> DecodeTier:
        for tier in self.tiers:
            if tier.max_attempt is None or attempt <= tier.max_attempt:
                return tier
        return self.tiers[-1]

    # ------------------------------------------------------------------
    # Still images
    # ------------------------------------------------------------------
    def decode_image(self, data: bytes) -> Optional[str]:
        decode = self.decoder()
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidImageError(f"Uploaded file is not a readable image: {e}") from e

        pixels = rasterize(image)
        height, width = pixels.shape
        symbol = decode(pixels, width, height, DecodeMode.BOTH)
        if symbol and symbol.data:
            logger.info("QR code found in uploaded image (%dx%d)", width, height)
            return symbol.data
        logger.info("No QR code found in uploaded image (%dx%d)", width, height)
        return None

    # ------------------------------------------------------------------
    # Live frames
    # ------------------------------------------------------------------
    def capture_once(self, frame_source: CameraHandle) -> Optional[str]:
        """Grab one frame from `frame_source` and try to decode it."""
        decode = self.decoder()
        try:
            frame = frame_source.read()
        except CameraAccessError:
            raise
        except Exception as e:
            raise CameraAccessError(f"Camera stopped delivering frames: {e}") from e
        if not ScanInputValidator.frame_is_ready(frame):
            return None

        pixels = rasterize(to_image(frame), self.max_frame_dim)
        height, width = pixels.shape
        self._attempts += 1
        self._emit_feedback(self._attempts)

        for mode in self.tier_for(self._attempts).modes:
            symbol = decode(pixels, width, height, mode)
            if symbol and symbol.data:
                logger.info("QR code detected on attempt %d (mode=%s)", self._attempts, mode.value)
                return symbol.data
        return None

    def _emit_feedback(self, attempt: int) -> None:
        hint = self.feedback_schedule.get(attempt)
        if hint is not None and self.on_feedback is not None:
            self.on_feedback(hint, FEEDBACK_MESSAGES[hint])
