# =======================================================================================
# qrcheckin/workers/scanner_worker.py - Background Camera Scan Worker
# =======================================================================================
import logging
import threading
from typing import Optional
from ..models.enums import ScanState
from ..services.scan_session import ACTIVE_STATES, ScanSessionController

logger = logging.getLogger(__name__)


class ScannerWorker:
    """Drives a scan session's timer from a background thread."""

    def __init__(self, controller: ScanSessionController, interval_s: float = 0.5):
        self.controller = controller
        self.interval_s = interval_s
        self.running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """Open the camera and start ticking. False when the camera could not be opened."""
        if self.running:
            return True
        if not self.controller.start():
            logger.warning("Scanner not started: session is %s", self.controller.state.value)
            return False

        self.running = True
        # each run gets its own event so a straggling old thread stays stopped
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run_loop, args=(self._stop_event,),
                                        name="qr-scanner", daemon=True)
        self._thread.start()
        logger.info("Scanner worker started (interval %.2fs)", self.interval_s)
        return True

    def stop(self) -> None:
        """Stop ticking and close the session (releases the camera)."""
        self.running = False
        self._stop_event.set()
        self.controller.close()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=max(1.0, self.interval_s * 3))
        self._thread = None

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def _run_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval_s):
            try:
                self.controller.tick()
            except Exception:
                logger.exception("Scanner tick failed")

            if self.controller.state not in ACTIVE_STATES:
                logger.info("Scanner loop ending: session is %s", self.controller.state.value)
                if stop_event is self._stop_event:
                    self.running = False
                break

    @property
    def state(self) -> ScanState:
        return self.controller.state
