import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from blog.api import auth as auth_api
from blog.api import posts as posts_api
from blog.core.config import Settings, get_settings
from blog.core.handlers import register_exception_handlers
from blog.core.logging_config import RequestContextMiddleware, init_application_logging
from blog.core.security import (
    PasswordHasher,
    SecurityHeadersMiddleware,
    get_or_create_secret_key,
    validate_secret_key,
)
from blog.core.sessions import SessionManager
from blog.core.templates import create_templates
from blog.core.tokens import TokenService
from blog.db.session import (
    check_database_health,
    create_db_engine,
    create_session_factory,
    init_database,
)
from blog.web import home, posts, users

logger = logging.getLogger("blog.main")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the blog application and its collaborators."""
    settings = settings or get_settings()

    # Initialize structured logging
    init_application_logging(settings)

    secret_key = get_or_create_secret_key(settings.SECRET_KEY, settings.DATA_DIR)
    if settings.SESSION_SECRET_KEY:
        validate_secret_key(settings.SESSION_SECRET_KEY)
    session_secret_key = settings.SESSION_SECRET_KEY or secret_key

    engine = create_db_engine(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create database tables
        init_database(engine)
        logger.info(
            "Application started",
            extra={"environment": settings.ENVIRONMENT, "version": settings.VERSION},
        )
        yield
        engine.dispose()
        logger.info("Application stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        description="A small blog with a server-rendered UI and a JSON API",
        version=settings.VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.token_service = TokenService(
        secret_key,
        issuer=settings.TOKEN_ISSUER,
        lifetime=timedelta(days=settings.TOKEN_LIFETIME_DAYS),
    )
    app.state.session_manager = SessionManager(
        session_secret_key,
        cookie_name=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE,
        https_only=settings.session_cookie_secure,
        same_site="lax",  # Allow cookies in form submissions
        salt=settings.SESSION_KDF_SALT.encode("utf-8"),
        kdf_iterations=settings.SESSION_KDF_ITERATIONS,
    )
    app.state.password_hasher = PasswordHasher(
        time_cost=settings.PASSWORD_HASH_TIME_COST,
        memory_cost=settings.PASSWORD_HASH_MEMORY_COST,
    )
    app.state.templates = create_templates()

    # Added last so it wraps everything: the correlation id is set before anything logs
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    # Health check endpoints
    @app.get("/health", tags=["Health"])
    def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy"}

    @app.get("/api/health", tags=["Health"])
    def api_health_check(request: Request):
        """Health including database connectivity and version info."""
        health_status = {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.VERSION,
            "environment": {
                "dev_mode": settings.DEV_MODE,
                "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
            },
            "services": {},
        }

        db_health = check_database_health(request.app.state.engine)
        health_status["services"]["database"] = {
            "status": db_health["status"],
            "type": db_health["database_type"],
            "connected": db_health["connected"],
            "table_count": db_health["table_count"],
            "last_error": db_health.get("last_error"),
        }
        if db_health["status"] != "healthy":
            health_status["status"] = "degraded"
        return health_status

    # API routers
    app.include_router(auth_api.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(posts_api.router, prefix="/api/post", tags=["Posts"])

    # Web routers
    app.include_router(home.router, tags=["Web"])
    app.include_router(users.router, tags=["Web"])
    app.include_router(posts.router, tags=["Web"])
    # This one needs to be last
    app.include_router(home.post_router, tags=["Web"])

    return app


app = create_app()
