# =======================================================================================
# qrcheckin/api/routes/verification.py - Verification & Attendance Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, HTTPException, Query
from ...container import ServiceContainer
from ...models.enums import VerifyOutcome
from ...models.schemas import (
    CheckInRequest,
    CheckInResponse,
    PollResponse,
    VerifyRequest,
    VerifyResponse,
    VerifyResult,
)
from ..dependencies import get_services

router = APIRouter()

OUTCOME_STATUS_CODES = {
    VerifyOutcome.PARSE_FAILURE: 400,
    VerifyOutcome.INTEGRITY_FAILURE: 400,
    VerifyOutcome.FIELD_MISMATCH: 400,
    VerifyOutcome.NOT_FOUND: 404,
}


def to_verify_response(result: VerifyResult) -> VerifyResponse:
    return VerifyResponse(
        success=result.success,
        outcome=result.outcome,
        message=result.message,
        via=result.via,
        registration=result.registration,
    )


def raise_for_outcome(result: VerifyResult) -> None:
    if not result.success:
        raise HTTPException(
            status_code=OUTCOME_STATUS_CODES[result.outcome],
            detail={"success": False, "outcome": result.outcome.value, "message": result.message},
        )


@router.post("/verify", response_model=VerifyResponse)
def verify_token(request: VerifyRequest, services: ServiceContainer = Depends(get_services)):
    """Resolve a scanned string to its registration without recording attendance."""
    result = services.verifier.verify(request.qrData)
    raise_for_outcome(result)
    return to_verify_response(result)


@router.post("/attendance/check-in", response_model=CheckInResponse)
def check_in(request: CheckInRequest, services: ServiceContainer = Depends(get_services)):
    """Verify a scan and mark the registrant as present."""
    result = services.attendance.check_in(
        request.qrData,
        method="external_scanner" if request.scannerDevice else "qr_scan",
        device=request.scannerDevice,
        operator=request.operatorId,
    )
    raise_for_outcome(result.verification)

    if result.already_verified:
        registration = result.registration
        raise HTTPException(status_code=409, detail={
            "success": False,
            "message": "Already verified",
            "participant": {
                "name": registration.full_name,
                "verifiedAt": registration.attendance_verified_at.isoformat()
                if registration.attendance_verified_at else None,
            },
        })

    return CheckInResponse(
        success=True,
        message=f"{result.registration.full_name} verified successfully",
        registration=result.registration,
    )


@router.get("/attendance/poll", response_model=PollResponse)
def poll_events(since: int = Query(0, ge=0, description="Last event sequence seen"),
                services: ServiceContainer = Depends(get_services)):
    """Attendance and scanner events published after `since`."""
    events = services.broadcaster.since(since)
    return PollResponse(events=events, latestSeq=services.broadcaster.latest_seq)
