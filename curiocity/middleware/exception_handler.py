"""Turn Curiocity errors and request validation failures into JSON responses."""

import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from ..exceptions import CuriocityException, ErrorCode

logger = logging.getLogger(__name__)


async def curiocity_exception_handler(request: Request, exc: CuriocityException) -> JSONResponse:
    """Respond with ``exc.to_dict()`` and the error's own status.

    4xx is the caller's problem and logs at WARNING; 5xx logs at ERROR.
    """
    logger.log(
        logging.ERROR if exc.status_code >= 500 else logging.WARNING,
        "%s %s failed with %s: %s",
        request.method,
        request.url.path,
        exc.error_code.value,
        exc.message,
        extra={"error_code": exc.error_code.value, "status_code": exc.status_code, "details": exc.details},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed or missing request fields as a 400 VALIDATION_ERROR."""
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": ErrorCode.VALIDATION_ERROR.value,
            "message": "Request validation failed",
            "details": {"errors": errors},
        },
    )
