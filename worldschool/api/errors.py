"""Translation of pipeline errors into HTTP responses.

Every error response has the shape ``{"error": str, "code": str, "details": list | None}``.
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from worldschool.pathways.errors import PathwayError


def error_response(status_code: int, error: str, code: str, details: list[str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "code": code, "details": details or None},
    )


async def pathway_error_handler(request: Request, exc: PathwayError) -> JSONResponse:
    logger.warning(
        "Pathway request failed",
        path=request.url.path,
        error_code=exc.code,
        error_message=exc.message,
        detail_count=len(exc.details),
    )
    return error_response(exc.status_code, exc.message, exc.code, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
    logger.info("Rejected invalid request body", path=request.url.path, detail_count=len(details))
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body", "INVALID_REQUEST", details)


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error_type=type(exc).__name__)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "INTERNAL", [str(exc)])


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PathwayError, pathway_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
