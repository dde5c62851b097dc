from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from agencydesk.config import settings
from agencydesk.core.exceptions import (
    AccessDeniedException,
    ConflictException,
    UnauthorizedException,
    NotFoundException,
    ForbiddenException,
    ValidationException,
)
from agencydesk.core.logging import configure_logging
from agencydesk.routes import (
    auth_routes,
    client_routes,
    collaborator_routes,
    invoice_routes,
    lead_routes,
    milestone_routes,
    payment_routes,
    permission_group_routes,
    project_routes,
    rate_card_routes,
    role_routes,
    service_routes,
    team_member_routes,
)

configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,  # Disable in production
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS middleware
cors_origins = settings.cors_origins_list
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# Exception handlers
@app.exception_handler(UnauthorizedException)
async def unauthorized_exception_handler(request: Request, exc: UnauthorizedException):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(NotFoundException)
async def not_found_exception_handler(request: Request, exc: NotFoundException):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ForbiddenException)
async def forbidden_exception_handler(request: Request, exc: ForbiddenException):
    content = {"detail": str(exc)}
    if isinstance(exc, AccessDeniedException):
        content["reason"] = exc.reason.value
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=content)


@app.exception_handler(ConflictException)
async def conflict_exception_handler(request: Request, exc: ConflictException):
    content = {"detail": str(exc)}
    if exc.reason is not None:
        content["reason"] = exc.reason.value
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=content)


@app.exception_handler(ValidationException)
async def validation_exception_handler(request: Request, exc: ValidationException):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


# Health check endpoint
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


# Root endpoint
@app.get("/")
async def root():
    return {
        "message": "AgencyDesk API",
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
    }


# Include routers
app.include_router(auth_routes.router, prefix="/api/auth", tags=["Auth"])
app.include_router(
    permission_group_routes.router, prefix="/api/permission-groups", tags=["Permission Groups"]
)
app.include_router(role_routes.router, prefix="/api/roles", tags=["Roles"])
app.include_router(team_member_routes.router, prefix="/api/team-members", tags=["Team Members"])
app.include_router(client_routes.router, prefix="/api/clients", tags=["Clients"])
app.include_router(service_routes.router, prefix="/api/services", tags=["Services"])
app.include_router(collaborator_routes.router, prefix="/api/collaborators", tags=["Collaborators"])
app.include_router(rate_card_routes.router, prefix="/api/rate-cards", tags=["Rate Cards"])
app.include_router(project_routes.router, prefix="/api/projects", tags=["Projects"])
app.include_router(invoice_routes.router, prefix="/api/invoices", tags=["Invoices"])
app.include_router(payment_routes.router, prefix="/api/payments", tags=["Payments"])
app.include_router(milestone_routes.router, prefix="/api/milestones", tags=["Milestones"])
app.include_router(lead_routes.router, prefix="/api/leads", tags=["Leads"])
