import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from expense_api.core.config import settings
from expense_api.core.errors import register_exception_handlers
from expense_api.core.logging_config import configure_logging
from expense_api.routers import expenses, health

configure_logging()
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, debug=settings.DEBUG)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=3600,
    )

    register_exception_handlers(app)

    # Root endpoint
    @app.get("/")
    def root():
        return {"message": f"Welcome to {settings.PROJECT_NAME} API"}

    # Register routers
    app.include_router(health.router, prefix=f"{settings.API_PREFIX}", tags=["Health"])  # /api/health
    app.include_router(expenses.router, prefix=f"{settings.API_PREFIX}/expenses", tags=["Expenses"])

    logger.info(f"{settings.PROJECT_NAME} API ready (table={settings.DYNAMO_EXPENSES_TABLE})")
    return app


app = create_app()
