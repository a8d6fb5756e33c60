import logging
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config.settings import Settings, settings as default_settings
from app.core.rate_limit import limiter
from app.database.supabase_client import SupabaseClients
from app.modules.access.middleware import AccessGateMiddleware
from app.modules.notifications.mailer import Mailer
from app.modules.access import routes as access_routes
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.coupons import routes as coupons_routes
from app.modules.payments import routes as payments_routes
from app.modules.reports import routes as reports_routes
from app.modules.counselors import routes as counselors_routes

logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


def create_app(
    settings: Optional[Settings] = None,
    supabase: Optional[SupabaseClients] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """Build the application. Clients not passed in are created from settings at startup."""
    settings = settings or default_settings
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.supabase = supabase
    app.state.mailer = mailer
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        if settings.is_production:
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    app.add_middleware(AccessGateMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include module routes
    app.include_router(auth_routes.callback_router)
    app.include_router(auth_routes.router, prefix="/api")
    app.include_router(access_routes.router, prefix="/api")
    app.include_router(profiles_routes.router, prefix="/api")
    app.include_router(coupons_routes.router, prefix="/api")
    app.include_router(payments_routes.router, prefix="/api")
    app.include_router(reports_routes.router, prefix="/api")
    app.include_router(counselors_routes.router, prefix="/api")

    @app.on_event("startup")
    async def startup_event():
        if app.state.supabase is None:
            app.state.supabase = SupabaseClients.from_settings(settings)
        if app.state.mailer is None:
            app.state.mailer = Mailer(settings)
        logger.info("Application startup")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Application shutdown")

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    @limiter.exempt
    async def ready():
        """Readiness check: Supabase clients and mailer are wired."""
        if app.state.supabase is None or app.state.mailer is None:
            return JSONResponse(status_code=503, content={"status": "starting"})
        return {"status": "ready"}

    if settings.frontend_dir:
        # Pages are served behind AccessGateMiddleware
        app.mount("/", StaticFiles(directory=settings.frontend_dir, html=True), name="frontend")
    else:
        @app.get("/")
        async def root():
            return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}

    return app


# Default app instance for uvicorn
app = create_app()
