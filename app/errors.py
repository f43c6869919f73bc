"""API error type rendered as ``{"error": message, ...}`` by the app handler."""

from typing import Any

from fastapi import Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ApiError(Exception):
    """Raised by services and routes to end a request with a JSON error body.

    Extra keyword arguments are merged into the body, e.g. ``partialCount``
    when a batch import stops half way.
    """

    def __init__(self, status_code: int, message: str, **extra: Any):
        self.status_code = status_code
        self.message = message
        self.extra = extra
        super().__init__(message)

    def to_body(self) -> dict:
        return {"error": self.message, **self.extra}


NOT_AUTHORIZED = "Não autorizado"
UNKNOWN_ACTION = "Ação desconhecida"

# Routes whose clients read a single "error" string instead of FastAPI's 422 list
ERROR_STRING_PREFIXES = ("/api/admin/",)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Requisição inválida"
    first = errors[0]
    # drop the leading "body"/"query" segment
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "valor inválido")
    return f"Campo inválido: {field} ({message})" if field else f"Requisição inválida ({message})"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    if request.url.path.startswith(ERROR_STRING_PREFIXES):
        return JSONResponse(status_code=400, content={"error": _first_validation_message(exc)})
    return await request_validation_exception_handler(request, exc)
