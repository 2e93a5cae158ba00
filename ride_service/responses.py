"""
Response envelope helpers: every endpoint answers
{success, message, data?, errors?}.
"""

import logging
from typing import Any, List, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ride_service.config import settings
from ride_service.models import ApiResponse

logger = logging.getLogger(__name__)


def envelope(
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
    success: bool = True,
    errors: Optional[List[Any]] = None,
) -> JSONResponse:
    body = ApiResponse(success=success, message=message, data=data, errors=errors)
    content = {"success": body.success, "message": body.message}
    if body.data is not None:
        content["data"] = jsonable_encoder(body.data)
    if body.errors is not None:
        content["errors"] = jsonable_encoder(body.errors)
    return JSONResponse(status_code=status_code, content=content)


def error(message: str, status_code: int, data: Any = None, errors: Optional[List[Any]] = None) -> JSONResponse:
    return envelope(message, data=data, status_code=status_code, success=False, errors=errors)


def server_error(message: str, exc: Exception) -> JSONResponse:
    """500 envelope; the exception text is only exposed in development"""
    logger.error(f"{message}: {exc}")
    content = {"success": False, "message": message}
    if settings.is_development:
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
