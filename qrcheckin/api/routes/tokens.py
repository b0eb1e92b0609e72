# =======================================================================================
# qrcheckin/api/routes/tokens.py - Token Issuance Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, HTTPException, Response
from ...container import ServiceContainer
from ...models.schemas import BulkIssueResponse, IssueTokenResponse
from ...utils.exceptions import RegistrationNotFoundError
from ..dependencies import get_services

router = APIRouter()


@router.post("/registrations/tokens/missing", response_model=BulkIssueResponse)
def issue_missing_tokens(services: ServiceContainer = Depends(get_services)):
    """Issue tokens for every registration that does not have one yet."""
    summary = services.issuer.issue_missing()
    return BulkIssueResponse(success=summary.errors == 0, generated=summary.generated, errors=summary.errors)


@router.post("/registrations/{registration_id}/token", response_model=IssueTokenResponse)
def issue_token(registration_id: str, services: ServiceContainer = Depends(get_services)):
    """Issue (or re-issue) a registration's QR token."""
    try:
        issued = services.issuer.issue(registration_id)
    except RegistrationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return IssueTokenResponse(
        success=True,
        registrationId=issued.registration_id,
        qrCode=issued.token,
        qrDataUrl=services.renderer.to_data_url(issued.image),
    )


@router.get("/registrations/{registration_id}/token.png")
def token_image(registration_id: str, services: ServiceContainer = Depends(get_services)):
    """PNG of the registration's current token, for printing or mail attachments."""
    registration = services.store.get_registration(registration_id)
    if registration is None:
        raise HTTPException(status_code=404, detail=f"Registration not found: {registration_id}")
    if not registration.token:
        raise HTTPException(status_code=404, detail="Registration has no QR code yet")

    return Response(content=services.renderer.render_png(registration.token), media_type="image/png")
