from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from .exceptions import CourseHubException

logger = logging.getLogger(__name__)

async def coursehub_exception_handler(request: Request, exc: CourseHubException):
    """Handle domain exceptions"""
    if exc.status_code >= 500:
        logger.error(f"{exc.kind}: {exc.message} - Path: {request.url.path}")
    else:
        logger.info(f"{exc.kind}: {exc.message} - Path: {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Render request body/path validation failures in the common envelope"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    content = {"error": first.get("msg", "Invalid request"), "type": "ValidationError"}
    if field:
        content["field"] = field
    return JSONResponse(status_code=422, content=content)

async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {exc} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "type": "InternalError"}
    )

def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(CourseHubException, coursehub_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, general_exception_handler)
