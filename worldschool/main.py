from fastapi import FastAPI
from loguru import logger

from worldschool.api.errors import register_error_handlers
from worldschool.api.pathways import router as pathways_router
from worldschool.api.user import router as user_router
from worldschool.config.settings import settings
from worldschool.core.logger import setup_logger

setup_logger(level=settings.log_level, log_file=settings.log_file or None)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Worldschool Pathways API",
        description="Learning pathway synthesis for travelling learners",
        version="0.1.0",
    )
    register_error_handlers(app)
    app.include_router(pathways_router)
    app.include_router(user_router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("Worldschool API initialized")
    return app


app = create_app()
