"""
SynProd API
FastAPI backend for production recipe management: JWT auth with role-gated
access (PRODUCTION / MANAGER / ADMIN), product CRUD over async PostgreSQL,
and the order-capacity recipe calculator with PDF export.
"""
import os
import logging
import time
import collections
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from synprod.services.logging_config import setup_logging
from synprod.services.middleware import RequestTimingMiddleware
from synprod.services.exceptions import (
    DuplicateEmail,
    DuplicateProduct,
    NotProductOwner,
    ProductNotFound,
    ProductValidationError,
    ProfileAccessDenied,
    RecipeScalingError,
    UserNotFound,
)

load_dotenv()

_log_level = os.getenv("LOG_LEVEL", "INFO")
_json_logs = os.getenv("LOG_FORMAT", "json").lower() != "text"
setup_logging(level=_log_level, json_output=_json_logs)
logger = logging.getLogger("synprod-api")

APP_VERSION = "1.0.0"

for var in ["DATABASE_URL", "JWT_SECRET_KEY"]:
    if not os.getenv(var):
        logger.warning(f"MISSING env var: {var} — running in dev mode")


@asynccontextmanager
async def lifespan(app: FastAPI):
    from synprod.db import init_db, engine
    try:
        await init_db()
    except Exception as e:
        logger.warning(f"init_db failed — continuing without tables: {e}")
    yield
    await engine.dispose()


app = FastAPI(
    title="SynProd API",
    version=APP_VERSION,
    description="Production recipe management and order-capacity calculator",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Rate Limiting Middleware
# ---------------------------------------------------------------------------
class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding-window rate limiter.
    Buckets:
      - public auth endpoints      : 5 req/min per IP
      - PDF export                 : 10 req/min per IP
      - everything else            : 60 req/min per IP
    """
    AUTH_PATHS = (
        "/api/auth/login",
        "/api/auth/accept-invite",
        "/api/auth/forgot-password",
        "/api/auth/reset-password",
    )

    WINDOW_SECONDS = 60

    def __init__(self, app):
        super().__init__(app)
        self._windows: dict = collections.defaultdict(collections.deque)
        self._last_sweep = time.monotonic()

    def _get_limit(self, path: str) -> int:
        if path in self.AUTH_PATHS:
            return 5
        if path.endswith(".pdf"):
            return 10
        return 60

    def _sweep(self, now: float):
        """Drop buckets with no hits inside the window, at most once per window."""
        if now - self._last_sweep < self.WINDOW_SECONDS:
            return
        self._last_sweep = now
        for bucket in list(self._windows):
            window = self._windows[bucket]
            while window and now - window[0] > self.WINDOW_SECONDS:
                window.popleft()
            if not window:
                del self._windows[bucket]

    async def dispatch(self, request: Request, call_next):
        ip = request.client.host if request.client else "unknown"
        path = request.url.path
        limit = self._get_limit(path)
        bucket = f"{ip}:{path if limit <= 10 else 'general'}"
        now = time.monotonic()
        self._sweep(now)
        window = self._windows[bucket]
        while window and now - window[0] > self.WINDOW_SECONDS:
            window.popleft()
        if len(window) >= limit:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests. Please slow down."},
                headers={"Retry-After": "60"},
            )
        window.append(now)
        return await call_next(request)


# ---------------------------------------------------------------------------
# Security Headers Middleware
# ---------------------------------------------------------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to every response."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


_cors_default = "http://localhost:3000"
cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _cors_default).split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RateLimitMiddleware)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)


# ---------------------------------------------------------------------------
# Domain error → HTTP mapping
# ---------------------------------------------------------------------------
def _error(status_code: int, exc: Exception, label: str) -> JSONResponse:
    logger.warning(f"{label}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(RecipeScalingError)
async def scaling_error_handler(request: Request, exc: RecipeScalingError):
    return _error(400, exc, "Scaling error")


@app.exception_handler(ProductValidationError)
async def validation_error_handler(request: Request, exc: ProductValidationError):
    return _error(400, exc, "Validation error")


@app.exception_handler(ProductNotFound)
async def not_found_handler(request: Request, exc: ProductNotFound):
    return _error(404, exc, "Product not found")


@app.exception_handler(DuplicateProduct)
async def duplicate_handler(request: Request, exc: DuplicateProduct):
    return _error(409, exc, "Duplicate resource")


@app.exception_handler(NotProductOwner)
async def not_owner_handler(request: Request, exc: NotProductOwner):
    return _error(403, exc, "Unauthorized access attempt")


@app.exception_handler(ProfileAccessDenied)
async def profile_access_handler(request: Request, exc: ProfileAccessDenied):
    return _error(403, exc, "Unauthorized access attempt")


@app.exception_handler(UserNotFound)
async def user_not_found_handler(request: Request, exc: UserNotFound):
    return _error(404, exc, "User not found")


@app.exception_handler(DuplicateEmail)
async def duplicate_email_handler(request: Request, exc: DuplicateEmail):
    return _error(409, exc, "Duplicate resource")


# Routers
from synprod.api.auth_routes import router as auth_router  # noqa: E402
from synprod.api.product_routes import router as product_router  # noqa: E402
from synprod.api.recipe_routes import router as recipe_router  # noqa: E402
from synprod.api.user_routes import router as user_router  # noqa: E402

app.include_router(auth_router)
app.include_router(user_router)
app.include_router(product_router)
app.include_router(recipe_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": APP_VERSION,
        "db_configured": bool(os.getenv("DATABASE_URL")),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("synprod.main:app", host="0.0.0.0", port=8000, reload=True)
