import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.feedback.router import router as feedback_router
from app.api.v1.payroll.router import router as payroll_router
from app.api.v1.pricing.router import router as pricing_router
from app.api.v1.profile.router import router as profile_router
from app.api.v1.referrals.router import router as referrals_router
from app.api.v1.reminders.router import router as reminders_router
from app.api.v1.report_cards.router import router as report_cards_router
from app.core.config import settings
from app.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Portal Ledger Backend")

    # CORS: the portal frontend calls this API from the browser
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.portal_app_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service errors raised outside a router try/except (e.g. in dependencies)
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # Routers
    app.include_router(referrals_router)
    app.include_router(pricing_router)
    app.include_router(report_cards_router)
    app.include_router(payroll_router)
    app.include_router(profile_router)
    app.include_router(reminders_router)
    app.include_router(feedback_router)

    return app


app = create_app()
