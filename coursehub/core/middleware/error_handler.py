import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _envelope(request: Request, code: str, message: str) -> dict[str, Any]:
    return {
        "error": {"code": code, "message": message},
        "request_id": getattr(request.state, "request_id", None),
    }


def _code_and_message(detail: Any) -> tuple[str, str]:
    # Controllers raise detail={"code": ..., "message": ...}; FastAPI/auth raise plain strings.
    if isinstance(detail, dict) and "code" in detail:
        return str(detail["code"]), str(detail.get("message", detail["code"]))
    if isinstance(detail, str):
        return detail, detail
    return "http_error", str(detail)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    code, message = _code_and_message(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(request, code, message),
        headers=getattr(exc, "headers", None),
    )


async def error_envelope_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except StarletteHTTPException as exc:
        return await http_exception_handler(request, exc)
    except Exception:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_envelope(request, "internal_error", "An unexpected error occurred"),
        )
