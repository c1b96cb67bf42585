"""
Defensive JSON serialization for every outgoing response body.

make_safe() turns an arbitrary object graph into plain JSON types: cycles,
callables, binary blobs and unknown objects become placeholder strings, long
strings are truncated, dates become ISO-8601. safe_dumps() never raises; if
something still goes wrong it returns a minimal error envelope.

SafeRoute applies make_safe to every endpoint result before FastAPI encodes
it; SafeJSONResponse renders whatever reaches the response through
safe_dumps, error bodies included.
"""

import functools
import inspect
import json
import logging
import math
from collections.abc import Callable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from fastapi.routing import APIRoute
from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable
from starlette.responses import JSONResponse, Response

from squadline.core.config import settings

logger = logging.getLogger(__name__)

CIRCULAR_SENTINEL = "[Circular Reference]"
FUNCTION_PLACEHOLDER = "[Function]"
BINARY_PLACEHOLDER = "[Binary Data]"
TRUNCATION_MARKER = "...(truncated)"
MAX_KEY_LEN = 100

FALLBACK_BODY = (
    '{"success":false,"error":{"message":"Response serialization failed",'
    '"code":"SERIALIZATION_ERROR"}}'
)


def _truncate(value: str, max_string: int) -> str:
    if len(value) > max_string:
        return value[:max_string] + TRUNCATION_MARKER
    return value


def _unique_key(key: str, taken: Mapping[str, Any]) -> str:
    """
    Cap key at MAX_KEY_LEN. When the capped key (or a stringified non-str key)
    is already taken, a "~N" suffix keeps both values.
    """
    candidate = key[:MAX_KEY_LEN]
    n = 2
    while candidate in taken:
        suffix = f"~{n}"
        candidate = key[: MAX_KEY_LEN - len(suffix)] + suffix
        n += 1
    return candidate


def _orm_columns(value: Any) -> dict[str, Any] | None:
    """Column values of a mapped SQLAlchemy instance (relationships are not followed)."""
    try:
        state = sa_inspect(value)
    except NoInspectionAvailable:
        return None
    mapper = getattr(state, "mapper", None)
    if mapper is None:
        return None
    return {attr.key: getattr(value, attr.key) for attr in mapper.column_attrs}


def make_safe(
    value: Any,
    *,
    max_depth: int | None = None,
    max_string: int | None = None,
) -> Any:
    """Return a JSON-safe copy of value. Never raises for pathological input."""
    depth_limit = max_depth if max_depth is not None else settings.SAFE_JSON_MAX_DEPTH
    string_limit = max_string if max_string is not None else settings.SAFE_JSON_MAX_STRING
    # ids of containers on the current path; a repeat means a cycle
    active: set[int] = set()

    def convert(obj: Any, depth: int) -> Any:
        if obj is None or isinstance(obj, bool):
            return obj
        if isinstance(obj, int):
            return obj
        if isinstance(obj, float):
            return obj if math.isfinite(obj) else None
        if isinstance(obj, str):
            return _truncate(obj, string_limit)
        if isinstance(obj, Enum):
            return convert(obj.value, depth)
        if isinstance(obj, (datetime, date, time)):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return convert(float(obj), depth)
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return BINARY_PLACEHOLDER
        if isinstance(obj, BaseException):
            return {"name": type(obj).__name__, "message": _truncate(str(obj), string_limit)}
        if callable(obj) and not isinstance(obj, (Mapping, BaseModel)):
            return FUNCTION_PLACEHOLDER

        is_sequence = isinstance(obj, (list, tuple, set, frozenset))
        if id(obj) in active:
            return CIRCULAR_SENTINEL
        if depth >= depth_limit:
            return "[Array]" if is_sequence else "[Object]"

        if isinstance(obj, BaseModel):
            source: Any = obj.model_dump()
        elif isinstance(obj, Mapping) or is_sequence:
            source = obj
        else:
            source = _orm_columns(obj)
            if source is None:
                return f"[Object {type(obj).__name__}]"

        active.add(id(obj))
        try:
            if isinstance(source, Mapping):
                result: dict[str, Any] = {}
                for key, item in source.items():
                    raw_key = key if isinstance(key, str) else str(convert(key, depth + 1))
                    safe_key = _unique_key(raw_key, result)
                    try:
                        result[safe_key] = convert(item, depth + 1)
                    except Exception:
                        result[safe_key] = "[Processing Error]"
                return result
            return [convert(item, depth + 1) for item in source]
        finally:
            active.discard(id(obj))

    return convert(value, 0)


def safe_dumps(value: Any) -> str:
    """Serialize value to a JSON string; on any failure return the fallback envelope."""
    try:
        return json.dumps(
            make_safe(value),
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )
    except Exception:
        logger.exception("Safe JSON serialization failed")
        return FALLBACK_BODY


class SafeJSONResponse(JSONResponse):
    """JSONResponse whose body always goes through safe_dumps."""

    def render(self, content: Any) -> bytes:
        return safe_dumps(content).encode("utf-8")


def _safe_result(result: Any) -> Any:
    if isinstance(result, Response):
        return result
    return make_safe(result)


def safe_endpoint(endpoint: Callable[..., Any]) -> Callable[..., Any]:
    """
    Wrap a route endpoint so its return value goes through make_safe before
    FastAPI's response model validation and jsonable_encoder see it.
    Response objects are passed through untouched.
    """
    if getattr(endpoint, "__safe_endpoint__", False):
        return endpoint

    if inspect.iscoroutinefunction(endpoint):

        @functools.wraps(endpoint)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return _safe_result(await endpoint(*args, **kwargs))

    else:

        @functools.wraps(endpoint)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return _safe_result(endpoint(*args, **kwargs))

    wrapper.__safe_endpoint__ = True  # type: ignore[attr-defined]
    return wrapper


class SafeRoute(APIRoute):
    """APIRoute whose endpoint result is made JSON-safe; set as route_class on every router."""

    def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
        super().__init__(path, safe_endpoint(endpoint), **kwargs)
