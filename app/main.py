import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.config import settings
from app.core.rate_limiter import WINDOW_SECONDS, limit_for_path, rate_limiter
from app.core.security import is_research_service_token
from app.database import init_db, engine
from app.logging_config import setup_logging
from app.routers import admin, applications, auth, billing, companies, insights, profile, research, webhooks

setup_logging()
logger = logging.getLogger(__name__)

PLACEHOLDER_SECRET_KEY = "replace-with-a-long-random-secret-key"

app = FastAPI(
    title="ApplyTrack API",
    description="Job application tracking with AI match analysis, company research and subscriptions.",
    version="1.0.0",
)

cors_origins = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(applications.router)
app.include_router(companies.router)
app.include_router(research.router)
app.include_router(insights.router)
app.include_router(billing.router)
app.include_router(webhooks.router)
app.include_router(admin.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    logger.exception("Unhandled server error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.middleware("http")
async def apply_rate_limits(request, call_next):
    if request.method == "OPTIONS":
        return await call_next(request)

    path = request.url.path
    limit = limit_for_path(path)
    if path == "/research/company" and is_research_service_token(request.headers.get("x-research-token")):
        limit = None
    if limit is not None and limit > 0:
        client_ip = request.client.host if request.client else "unknown"
        allowed, retry_after = rate_limiter.allow(f"{client_ip}:{path}", limit=limit, window_seconds=WINDOW_SECONDS)
        if not allowed:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests. Please retry shortly."},
                headers={"Retry-After": str(retry_after)},
            )

    return await call_next(request)


@app.get("/health/live")
def health_live():
    return {"status": "ok"}


@app.get("/health/ready")
def health_ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception:
        logger.exception("Readiness check failed")
        return JSONResponse(status_code=503, content={"status": "not_ready"})


def check_placeholder_settings() -> None:
    """Refuse placeholder secrets in production; warn about them elsewhere."""
    problems = []
    if settings.secret_key == PLACEHOLDER_SECRET_KEY:
        problems.append("SECRET_KEY is using the placeholder default")
    if "username:password@" in settings.database_url:
        problems.append("DATABASE_URL uses placeholder credentials")
    if not settings.stripe_webhook_secret:
        problems.append("STRIPE_WEBHOOK_SECRET is not set; webhooks will be rejected")
    if settings.company_research_url and not settings.research_service_token:
        problems.append("COMPANY_RESEARCH_URL is set without RESEARCH_SERVICE_TOKEN")

    env = (settings.app_env or "development").lower()
    if env in {"production", "prod"} and problems:
        raise RuntimeError("; ".join(problems))
    for problem in problems:
        logger.warning("%s. Set it in .env for real deployments.", problem)


@app.on_event("startup")
def on_startup():
    logger.info("Starting ApplyTrack API")
    check_placeholder_settings()
    init_db()


@app.get("/")
def root():
    return {"message": "ApplyTrack API. See /docs for the endpoint reference."}
