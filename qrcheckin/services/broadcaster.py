# =======================================================================================
# qrcheckin/services/broadcaster.py - Real-time Attendance Events
# =======================================================================================
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional
from ..models.enums import ErrorKind, ScanFeedback, ScanState
from ..models.schemas import AttendanceEvent

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttendanceBroadcaster:
    """
    Bounded, sequence-numbered event log that check-in stations poll.

    Each published event gets a monotonically increasing ``seq``; clients ask
    for everything after the last ``seq`` they saw.
    """

    def __init__(self, max_events: int = 500, clock: Callable[[], datetime] = utcnow):
        self._events: Deque[AttendanceEvent] = deque(maxlen=max_events)
        self._seq = 0
        self._lock = threading.Lock()
        self._clock = clock

    @property
    def latest_seq(self) -> int:
        return self._seq

    def publish(self, event_type: str, data: Optional[Dict[str, Any]] = None) -> AttendanceEvent:
        with self._lock:
            self._seq += 1
            event = AttendanceEvent(seq=self._seq, type=event_type, timestamp=self._clock(), data=data or {})
            self._events.append(event)
        logger.debug("Broadcast %s #%d", event_type, event.seq)
        return event

    def since(self, seq: int = 0) -> List[AttendanceEvent]:
        with self._lock:
            return [event for event in self._events if event.seq > seq]


class BroadcastingSessionEvents:
    """
    Session event sink for the station camera: publishes scanner activity and
    records attendance for every accepted scan.
    """

    def __init__(self, broadcaster: AttendanceBroadcaster, attendance=None,
                 scanner_device: Optional[str] = None):
        self.broadcaster = broadcaster
        self.attendance = attendance
        self.scanner_device = scanner_device

    def on_scanned(self, registration_id: str, full_name: str) -> None:
        if self.attendance is not None:
            self.attendance.record(registration_id, full_name, method="station_scan",
                                   device=self.scanner_device)
        else:
            self.broadcaster.publish("new_scan", {"registrationId": registration_id, "fullName": full_name})

    def on_error(self, kind: ErrorKind, message: str) -> None:
        self.broadcaster.publish("scan_error", {"kind": kind.value, "message": message})

    def on_status_change(self, state: ScanState) -> None:
        self.broadcaster.publish("scanner_status", {"state": state.value})

    def on_feedback(self, hint: ScanFeedback, message: str) -> None:
        self.broadcaster.publish("scanner_feedback", {"hint": hint.value, "message": message})
