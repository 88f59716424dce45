from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    *,
    data: Optional[Any] = None,
    message: str = "Operation successful",
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    Single source of truth for the /api/v1 JSON responses.
    Automatically sets status = "success" if < 400 else "error"
    """
    status_str = "success" if status_code < 400 else "error"
    data = jsonable_encoder(data) if data is not None else {}

    return JSONResponse(
        status_code=status_code,
        content={
            "status_code": status_code,
            "status": status_str,
            "message": message,
            "data": data,
        },
    )


def error_response(
    *,
    error: str,
    details: Optional[Any] = None,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Error body shared by every endpoint: {"error": ..., "details"?: ...}."""
    content = {
        "status_code": status_code,
        "status": "error",
        "error": error,
    }
    if details is not None:
        content["details"] = jsonable_encoder(details)

    return JSONResponse(status_code=status_code, content=content, headers=headers)
