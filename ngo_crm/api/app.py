"""FastAPI application factory"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ngo_crm import __version__
from ngo_crm.api.deps import LoginRequired
from ngo_crm.api.routes.auth import router as auth_router
from ngo_crm.api.routes.contracts import router as contracts_router
from ngo_crm.api.routes.functions import router as functions_router
from ngo_crm.api.routes.pages import fallback_router, router as pages_router
from ngo_crm.api.routes.persons import router as persons_router
from ngo_crm.api.routes.settings import router as settings_router
from ngo_crm.api.schemas import HealthResponse
from ngo_crm.errors import (
    AuthError,
    CrmError,
    NotFoundError,
    PermissionDeniedError,
    RemoteError,
    ValidationError,
)
from ngo_crm.services.container import Services, build_services
from ngo_crm.utils.logging import configure_logging

logger = logging.getLogger(__name__)

# Most specific first; CrmError catches the rest
ERROR_STATUS = (
    (ValidationError, 400),
    (AuthError, 401),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (RemoteError, 502),
    (CrmError, 500),
)


def _status_for(exc: CrmError) -> int:
    for error_class, status in ERROR_STATUS:
        if isinstance(exc, error_class):
            return status
    return 500


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    services = services or build_services()
    configure_logging(services.settings.log_level)

    app = FastAPI(
        title="NGO CRM API",
        description="Persons, contracts and document templates for an NGO",
        version=__version__,
    )
    app.state.services = services

    # CORS: allow all for the single-operator client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        """Unauthenticated: 401 with where to sign in."""
        return JSONResponse(
            status_code=401,
            content=exc.to_dict(),
            headers={"Location": exc.redirect},
        )

    @app.exception_handler(CrmError)
    async def crm_error_handler(request: Request, exc: CrmError):
        status = _status_for(exc)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        content = {"detail": str(exc)}
        if isinstance(exc, ValidationError) and exc.errors:
            content["errors"] = exc.errors
        return JSONResponse(status_code=status, content=content)

    @app.exception_handler(PydanticValidationError)
    async def model_error_handler(request: Request, exc: PydanticValidationError):
        errors = {".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()}
        return JSONResponse(status_code=400, content={"detail": "Invalid input", "errors": errors})

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(version=__version__, db_mode=services.settings.db_mode)

    app.include_router(auth_router)
    app.include_router(persons_router)
    app.include_router(contracts_router)
    app.include_router(settings_router)
    app.include_router(functions_router)
    app.include_router(pages_router)
    app.include_router(fallback_router)

    return app
