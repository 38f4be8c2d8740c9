"""Translate domain exceptions into HTTP responses.

Every error response has the same envelope::

    {"success": false, "kind": "...", "message": "...", "errors": {...}}

Exceptions not listed here are left to propagate (HTTP 500).
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from storefront.order.errors import DuplicateOrderError, OrderError, OrderStateError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_ORDER_ERROR_STATUS = {
    OrderStateError: 400,
    DuplicateOrderError: 409,
}


def _summarize(messages, default: str) -> str:
    """Flatten Protean's ``{field: [msg, ...]}`` messages into one line."""
    if isinstance(messages, dict):
        parts = []
        for field, value in messages.items():
            text = "; ".join(value) if isinstance(value, list | tuple) else str(value)
            parts.append(text if field in ("_entity", "") else f"{field}: {text}")
        return ", ".join(parts) or default
    if messages:
        return str(messages)
    return default


def _exception_messages(exc):
    """Messages a Protean exception was raised with, as a dict where possible."""
    messages = getattr(exc, "messages", None)
    if messages is None and exc.args:
        messages = exc.args[0]
    return messages


def error_response(status_code: int, kind: str, message: str, errors=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "kind": kind, "message": message, "errors": errors or {}},
    )


async def _handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    messages = _exception_messages(exc)
    if not isinstance(messages, dict):
        messages = {"_entity": str(messages or "Invalid input")}
    return error_response(400, "validation", _summarize(messages, "Invalid input"), messages)


async def _handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.setdefault(field or "body", []).append(error.get("msg", "Invalid value"))
    return error_response(422, "validation", _summarize(errors, "Invalid request"), errors)


async def _handle_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    messages = _exception_messages(exc)
    if not isinstance(messages, dict):
        messages = {"_entity": str(messages or "Not found")}
    return error_response(404, "not_found", _summarize(messages, "Not found"), messages)


async def _handle_order_error(request: Request, exc: OrderError) -> JSONResponse:
    status_code = _ORDER_ERROR_STATUS.get(type(exc), 400)
    logger.info("Order operation rejected", path=request.url.path, kind=exc.kind, reason=exc.message)
    return error_response(status_code, exc.kind, exc.message)


def register_error_handlers(app: FastAPI) -> None:
    """Install the storefront error envelope on top of Protean's defaults."""
    register_exception_handlers(app)
    app.add_exception_handler(ValidationError, _handle_validation_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation_error)
    app.add_exception_handler(ObjectNotFoundError, _handle_not_found)
    app.add_exception_handler(OrderError, _handle_order_error)
