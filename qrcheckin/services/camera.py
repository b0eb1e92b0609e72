# =======================================================================================
# qrcheckin/services/camera.py - Camera Acquisition
# =======================================================================================
import importlib
import logging
from typing import Any, Optional, Protocol
from ..utils.exceptions import CameraAccessError, LibraryUnavailableError

logger = logging.getLogger(__name__)


class CameraHandle(Protocol):
    """An exclusively owned frame source."""

    def read(self) -> Optional[Any]:
        ...

    def release(self) -> None:
        ...


class OpenCvCamera:
    """Wraps cv2.VideoCapture; frames come out as RGB numpy arrays."""

    def __init__(self, capture, cv2_module, index: int):
        self._capture = capture
        self._cv2 = cv2_module
        self.index = index

    def read(self) -> Optional[Any]:
        if self._capture is None:
            raise CameraAccessError(f"Camera {self.index} has been released")
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        return self._cv2.cvtColor(frame, self._cv2.COLOR_BGR2RGB)

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Camera %s released", self.index)


def open_camera(index: int = 0, width: int = 1280, height: int = 720) -> OpenCvCamera:
    """Open camera `index`. Raises CameraAccessError (nothing left open on failure)."""
    try:
        cv2 = importlib.import_module("cv2")
    except ImportError as e:
        raise LibraryUnavailableError("OpenCV is not installed; camera capture unavailable") from e

    capture = cv2.VideoCapture(index)
    try:
        if not capture.isOpened():
            raise CameraAccessError(
                f"Unable to access camera {index}. Check permissions or try uploading an image instead."
            )
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    except Exception:
        capture.release()
        raise

    logger.info("Camera %s opened", index)
    return OpenCvCamera(capture, cv2, index)
