# =======================================================================================
# qrcheckin/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from .enums import ScanState, VerifiedVia, VerifyOutcome

# ========== Token payload ==========

class TokenFields(BaseModel):
    """Identity fields copied verbatim from a registration into its token."""
    model_config = ConfigDict(populate_by_name=True, strict=True)

    id: str
    full_name: str = Field(..., alias="fullName")
    gender: str
    date_of_birth: str = Field(..., alias="dateOfBirth")
    phone_number: str = Field(..., alias="phoneNumber")
    email_address: str = Field(..., alias="emailAddress")


class TokenPayload(TokenFields):
    """The scanned payload: identity fields plus issuance time and checksum."""

    # "timestamp" is what older tokens carry
    issued_at: int = Field(
        ...,
        validation_alias=AliasChoices("issuedAt", "timestamp", "issued_at"),
        serialization_alias="issuedAt",
    )
    checksum: str


# ========== Registration (owned by the registration store) ==========

class Registration(BaseModel):
    """Registration record as exposed by the store."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    full_name: str = Field(..., alias="fullName")
    gender: str
    date_of_birth: str = Field(..., alias="dateOfBirth")
    phone_number: str = Field(..., alias="phoneNumber")
    email_address: str = Field(..., alias="emailAddress")
    token: Optional[str] = Field(None, alias="qrCode")
    attendance_verified: bool = Field(False, alias="attendanceVerified")
    attendance_verified_at: Optional[datetime] = Field(None, alias="attendanceVerifiedAt")
    verification_method: Optional[str] = Field(None, alias="verificationMethod")
    verification_device: Optional[str] = Field(None, alias="verificationDevice")
    verification_operator: Optional[str] = Field(None, alias="verificationOperator")

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _date_as_text(cls, value: Any) -> Any:
        # DATE columns come back as date objects on some drivers
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return value

    def token_fields(self) -> TokenFields:
        return TokenFields(
            id=self.id,
            full_name=self.full_name,
            gender=self.gender,
            date_of_birth=self.date_of_birth,
            phone_number=self.phone_number,
            email_address=self.email_address,
        )


# ========== Verification ==========

class VerifyResult(BaseModel):
    """Outcome of resolving a scanned string back to a registration."""
    outcome: VerifyOutcome
    message: str
    registration: Optional[Registration] = None
    via: Optional[VerifiedVia] = None

    @property
    def success(self) -> bool:
        return self.outcome == VerifyOutcome.SUCCESS


# ========== HTTP: tokens ==========

class IssueTokenResponse(BaseModel):
    success: bool
    registrationId: str
    qrCode: str
    qrDataUrl: str
    message: str = "QR code generated successfully"


class BulkIssueResponse(BaseModel):
    success: bool
    generated: int
    errors: int


# ========== HTTP: verification / attendance ==========

class VerifyRequest(BaseModel):
    qrData: str = Field(..., description="Raw scanned string (token payload or bare id)")


class VerifyResponse(BaseModel):
    success: bool
    outcome: VerifyOutcome
    message: str
    via: Optional[VerifiedVia] = None
    registration: Optional[Registration] = None


class CheckInRequest(BaseModel):
    qrData: str = Field(..., description="Raw scanned string")
    scannerDevice: Optional[str] = Field(None, description="Device that captured the scan")
    operatorId: Optional[str] = Field(None, description="Operator running the station")


class CheckInResponse(BaseModel):
    success: bool
    message: str
    registration: Registration


class AttendanceEvent(BaseModel):
    seq: int
    type: str
    timestamp: datetime
    data: Dict[str, Any] = Field(default_factory=dict)


class PollResponse(BaseModel):
    events: List[AttendanceEvent]
    latestSeq: int


# ========== HTTP: scanner session ==========

class ScannerStatusResponse(BaseModel):
    state: ScanState
    running: bool
    attempts: int
    lastAcceptedId: Optional[str] = None


class ScannerActionResponse(BaseModel):
    success: bool
    state: ScanState
    message: str
    result: Optional[VerifyResponse] = None


# ========== Health ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
