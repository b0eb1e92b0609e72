# =======================================================================================
# qrcheckin/services/registration_store.py - Registration Store Adapters
# =======================================================================================
import threading
from datetime import datetime
from typing import Dict, List, Optional, Protocol
from sqlalchemy import DateTime, bindparam, text
from ..database import DatabaseManager
from ..models.schemas import Registration

_REGISTRATION_COLUMNS = """
    id, full_name, gender, date_of_birth, phone_number, email_address,
    qr_code AS token, attendance_verified, attendance_verified_at,
    verification_method, verification_device, verification_operator
"""


class RegistrationStore(Protocol):
    """What the token subsystem needs from the registration owner."""

    def get_registration(self, registration_id: str) -> Optional[Registration]:
        ...

    def set_token(self, registration_id: str, token: str) -> None:
        ...

    def list_missing_tokens(self) -> List[str]:
        ...

    def mark_attendance(self, registration_id: str, method: str, device: Optional[str],
                        operator: Optional[str], verified_at: datetime) -> bool:
        ...


class SqlRegistrationStore:
    """Registration store backed by the `registrations` table."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def ensure_schema(self) -> None:
        """Create the registrations table if it does not exist yet."""
        with self.db.get_connection() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS registrations (
                    id VARCHAR(64) PRIMARY KEY,
                    full_name VARCHAR(255) NOT NULL,
                    gender VARCHAR(32) NOT NULL,
                    date_of_birth VARCHAR(40) NOT NULL,
                    phone_number VARCHAR(40) NOT NULL,
                    email_address VARCHAR(255) NOT NULL,
                    qr_code TEXT NULL,
                    attendance_verified BOOLEAN NOT NULL DEFAULT FALSE,
                    attendance_verified_at TIMESTAMP NULL,
                    verification_method VARCHAR(40) NULL,
                    verification_device VARCHAR(100) NULL,
                    verification_operator VARCHAR(100) NULL
                )
            """))

    def get_registration(self, registration_id: str) -> Optional[Registration]:
        row = self.db.fetch_one(
            f"SELECT {_REGISTRATION_COLUMNS} FROM registrations WHERE id=:rid",
            {"rid": registration_id},
        )
        return Registration.model_validate(dict(row)) if row else None

    def set_token(self, registration_id: str, token: str) -> None:
        self.db.execute_query(
            "UPDATE registrations SET qr_code=:token WHERE id=:rid",
            {"token": token, "rid": registration_id},
        )

    def list_missing_tokens(self) -> List[str]:
        rows = self.db.fetch_all(
            "SELECT id FROM registrations WHERE qr_code IS NULL OR qr_code = '' ORDER BY id"
        )
        return [row["id"] for row in rows]

    def mark_attendance(self, registration_id: str, method: str, device: Optional[str],
                        operator: Optional[str], verified_at: datetime) -> bool:
        """Flag the registration as attended. False when it already was."""
        stmt = text("""
            UPDATE registrations
            SET attendance_verified=TRUE, attendance_verified_at=:at,
                verification_method=:method, verification_device=:device,
                verification_operator=:operator
            WHERE id=:rid AND attendance_verified=FALSE
        """).bindparams(bindparam("at", type_=DateTime()))
        with self.db.get_connection() as conn:
            result = conn.execute(stmt, {
                "at": verified_at, "method": method, "device": device,
                "operator": operator, "rid": registration_id,
            })
            return result.rowcount == 1

    def add_registration(self, registration: Registration) -> None:
        """Insert a registration row (seeding and tests; CRUD lives elsewhere)."""
        self.db.execute_query(
            """
            INSERT INTO registrations
                (id, full_name, gender, date_of_birth, phone_number, email_address, qr_code)
            VALUES (:id, :full_name, :gender, :dob, :phone, :email, :token)
            """,
            {
                "id": registration.id, "full_name": registration.full_name,
                "gender": registration.gender, "dob": registration.date_of_birth,
                "phone": registration.phone_number, "email": registration.email_address,
                "token": registration.token,
            },
        )


class InMemoryRegistrationStore:
    """Dictionary-backed store for tests and demos."""

    def __init__(self, registrations: Optional[List[Registration]] = None):
        self._rows: Dict[str, Registration] = {}
        self._lock = threading.Lock()
        for registration in registrations or []:
            self.add_registration(registration)

    def add_registration(self, registration: Registration) -> None:
        with self._lock:
            self._rows[registration.id] = registration.model_copy()

    def get_registration(self, registration_id: str) -> Optional[Registration]:
        with self._lock:
            row = self._rows.get(registration_id)
            return row.model_copy() if row else None

    def set_token(self, registration_id: str, token: str) -> None:
        with self._lock:
            row = self._rows.get(registration_id)
            if row is not None:
                self._rows[registration_id] = row.model_copy(update={"token": token})

    def list_missing_tokens(self) -> List[str]:
        with self._lock:
            return sorted(rid for rid, row in self._rows.items() if not row.token)

    def mark_attendance(self, registration_id: str, method: str, device: Optional[str],
                        operator: Optional[str], verified_at: datetime) -> bool:
        with self._lock:
            row = self._rows.get(registration_id)
            if row is None or row.attendance_verified:
                return False
            self._rows[registration_id] = row.model_copy(update={
                "attendance_verified": True,
                "attendance_verified_at": verified_at,
                "verification_method": method,
                "verification_device": device,
                "verification_operator": operator,
            })
            return True
