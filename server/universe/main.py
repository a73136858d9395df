import logging

import universe.models  # noqa: F401
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from universe.core.config import settings
from universe.core.db import SessionLocal
from universe.routers import admin as admin_router
from universe.routers import announcements as announcements_router
from universe.routers import auth as auth_router
from universe.routers import chatbot as chatbot_router
from universe.routers import clubs as clubs_router
from universe.routers import events as events_router
from universe.routers import memberships as memberships_router
from universe.routers import payments as payments_router
from universe.routers import uploads as uploads_router
from universe.services import payment_confirmation
from universe.services.backend_client import BackendError
from universe.services.membership_form import ApplicationValidationError

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

app = FastAPI(title="UniVerse API", version="0.1.0")

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone="UTC")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router)
app.include_router(clubs_router.router)
app.include_router(events_router.router)
app.include_router(announcements_router.router)
app.include_router(memberships_router.router)
app.include_router(payments_router.router)
app.include_router(admin_router.router)
app.include_router(uploads_router.router)
app.include_router(chatbot_router.router)


@app.exception_handler(ApplicationValidationError)
async def application_validation_handler(request: Request, exc: ApplicationValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": exc.message,
            "field": exc.field,
            "errors": [error.model_dump() for error in exc.errors],
        },
    )


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


def _run_finalization_report() -> None:
    with SessionLocal() as session:
        payment_ids = payment_confirmation.finalization_report(session)
        if payment_ids:
            logger.warning(
                "membership_finalization_report",
                extra={"failed_total": len(payment_ids), "payment_ids": payment_ids},
            )


@app.on_event("startup")
def start_scheduled_jobs() -> None:
    if not scheduler.running:
        scheduler.start()
    scheduler.add_job(
        _run_finalization_report,
        trigger="cron",
        hour=settings.FINALIZATION_REPORT_HOUR,
        minute=0,
        id="membership_finalization_report",
        replace_existing=True,
    )


@app.on_event("shutdown")
def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
