from coursehub.core.middleware.request_id import (
    RequestIdLogFilter,
    current_request_id,
    request_id_middleware,
)
from coursehub.core.middleware.error_handler import (
    error_envelope_middleware,
    http_exception_handler,
)

__all__ = [
    "RequestIdLogFilter",
    "current_request_id",
    "request_id_middleware",
    "error_envelope_middleware",
    "http_exception_handler",
]
