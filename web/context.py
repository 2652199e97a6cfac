"""Request-time access to the service container and the main loop."""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Awaitable, Dict, TypeVar

from flask import current_app, request

from core.exceptions import ValidationError
from services.async_runner import LoopRunner
from services.container import ServiceContainer

T = TypeVar("T")

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TRUTHY = frozenset({"1", "true", "yes", "on"})
FALSY = frozenset({"0", "false", "no", "off"})


def get_services() -> ServiceContainer:
    services = current_app.config.get("SERVICES")
    if services is None:
        raise RuntimeError("Service container is not configured")
    return services


def run(coro: Awaitable[T]) -> T:
    runner: LoopRunner | None = current_app.config.get("LOOP_RUNNER")
    if runner is None:
        raise RuntimeError("Asyncio loop is not initialized")
    return runner.run(coro)


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def int_field(data: Dict[str, Any], name: str, required: bool = True) -> int | None:
    value = data.get(name)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{name} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be an integer") from e


def flag_arg(name: str) -> bool:
    return (request.args.get(name) or "").lower() in TRUTHY


def bool_field(data: Dict[str, Any], name: str, default: bool) -> bool:
    """JSON booleans pass through; the usual form spellings are accepted as strings."""
    value = data.get(name)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUTHY:
            return True
        if lowered in FALSY:
            return False
    raise ValidationError(f"{name} must be a boolean")


def date_arg(value: str) -> date:
    if not DATE_PATTERN.match(value):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD") from e
