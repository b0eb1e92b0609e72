# =======================================================================================
# qrcheckin/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import HTTPException, Request
from ..container import ServiceContainer

def get_services(request: Request) -> ServiceContainer:
    """Dependency to get the application's service container."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services not initialised")
    return services
