# =======================================================================================
# qrcheckin/api/routes/scanner.py - Station Camera Scanner Endpoints
# =======================================================================================
from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile
from ...container import ServiceContainer
from ...models.schemas import ScannerActionResponse, ScannerStatusResponse, VerifyResult
from ..dependencies import get_services
from .verification import to_verify_response

router = APIRouter()


def _last_message(services: ServiceContainer, since_seq: int, default: str) -> str:
    """Most recent error/feedback message the session published after `since_seq`."""
    for event in reversed(services.broadcaster.since(since_seq)):
        if event.type in ("scan_error", "scanner_feedback", "already_verified"):
            return event.data.get("message") or f"{event.data.get('fullName', 'Registrant')} already verified"
    return default


def _action_response(services: ServiceContainer, result: Optional[VerifyResult], since_seq: int,
                     default: str) -> ScannerActionResponse:
    controller = services.scanner.controller
    if result is None:
        return ScannerActionResponse(
            success=False, state=controller.state, message=_last_message(services, since_seq, default)
        )
    return ScannerActionResponse(
        success=result.success,
        state=controller.state,
        message=result.message if result.success else _last_message(services, since_seq, result.message),
        result=to_verify_response(result),
    )


@router.get("/scanner/status", response_model=ScannerStatusResponse)
def scanner_status(services: ServiceContainer = Depends(get_services)):
    controller = services.scanner.controller
    return ScannerStatusResponse(
        state=controller.state,
        running=services.scanner.running,
        attempts=controller.attempts,
        lastAcceptedId=controller.last_accepted_id,
    )


@router.post("/scanner/start", response_model=ScannerActionResponse)
def start_scanner(services: ServiceContainer = Depends(get_services)):
    """Open the station camera and start automatic scanning."""
    since = services.broadcaster.latest_seq
    started = services.scanner.start()
    return ScannerActionResponse(
        success=started,
        state=services.scanner.state,
        message="Automatically scanning for QR codes" if started
        else _last_message(services, since, "Unable to start scanner"),
    )


@router.post("/scanner/stop", response_model=ScannerActionResponse)
def stop_scanner(services: ServiceContainer = Depends(get_services)):
    """Stop scanning and release the camera."""
    services.scanner.stop()
    return ScannerActionResponse(success=True, state=services.scanner.state, message="Scanner stopped")


@router.post("/scanner/manual-scan", response_model=ScannerActionResponse)
def manual_scan(services: ServiceContainer = Depends(get_services)):
    """Capture one frame right now instead of waiting for the timer."""
    since = services.broadcaster.latest_seq
    result = services.scanner.controller.manual_scan()
    return _action_response(services, result, since, "No QR code detected in frame")


@router.post("/scanner/upload", response_model=ScannerActionResponse)
def upload_image(file: UploadFile = File(...), services: ServiceContainer = Depends(get_services)):
    """Decode an uploaded photo of a QR code and verify it."""
    since = services.broadcaster.latest_seq
    data = file.file.read()
    result = services.scanner.controller.upload_image(data)
    return _action_response(services, result, since, "No QR code detected in image")
