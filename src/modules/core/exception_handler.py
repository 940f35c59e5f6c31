"""DRF exception handler producing the standard error envelope.

Every error response has the shape::

    {"type": "client_error" | "server_error",
     "errors": [{"code": str, "detail": str, "attr": str | None}]}

Domain errors (``shared.domain.exceptions.DomainError``) carry their own
HTTP status and code.  DRF errors (validation, authentication, throttling)
are reshaped into the same envelope.  Anything else is an unexpected fault:
it is logged with the full traceback and reported without internals.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.exceptions import ErrorDetail
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from shared.domain.exceptions import DomainError

logger = structlog.get_logger(__name__)


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    view = context.get("view")
    view_name = type(view).__name__ if view is not None else None

    if isinstance(exc, DomainError):
        logger.warning(
            "api.domain_error",
            error=type(exc).__name__,
            detail=str(exc),
            view=view_name,
        )
        return Response(
            _envelope("client_error", [_error(exc.code, str(exc))]),
            status=exc.status_code,
        )

    if isinstance(exc, PydanticValidationError):
        errors = [
            _error(
                "invalid",
                item["msg"],
                ".".join(str(part) for part in item["loc"]) or None,
            )
            for item in exc.errors()
        ]
        return Response(
            _envelope("validation_error", errors),
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.exception("api.unhandled_error", view=view_name)
        return Response(
            _envelope("server_error", [_error("error", "A server error occurred.")]),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    error_type = "validation_error" if response.status_code == 400 else "client_error"
    response.data = _envelope(error_type, _flatten(response.data))
    return response


def _envelope(error_type: str, errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": error_type, "errors": errors}


def _error(code: str, detail: str, attr: Optional[str] = None) -> Dict[str, Any]:
    return {"code": code, "detail": detail, "attr": attr}


def _flatten(data: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    """Turn DRF's nested ``detail`` structures into a flat error list."""
    if isinstance(data, dict):
        if set(data) == {"detail"} and attr is None:
            return _flatten(data["detail"])
        errors: List[Dict[str, Any]] = []
        for key, value in data.items():
            nested = key if attr is None else f"{attr}.{key}"
            if key == "non_field_errors":
                nested = attr
            errors.extend(_flatten(value, nested))
        return errors
    if isinstance(data, list):
        errors = []
        for index, item in enumerate(data):
            if isinstance(item, (dict, list)):
                nested = str(index) if attr is None else f"{attr}.{index}"
                errors.extend(_flatten(item, nested))
            else:
                errors.extend(_flatten(item, attr))
        return errors
    code = getattr(data, "code", None) if isinstance(data, ErrorDetail) else None
    return [_error(code or "error", str(data), attr)]
