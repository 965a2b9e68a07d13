"""Helpers for reading model records and awaiting model results."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Awaitable, TypeVar, Union

T = TypeVar("T")

MaybeAwaitable = Union[T, Awaitable[T]]


async def resolve(value: MaybeAwaitable[T]) -> T:
    """Await ``value`` if the model handed back an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


def field_of(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a record that is either an object or a mapping."""
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def is_present(value: Any) -> bool:
    """Whether the model returned something.

    Records are application defined, so an empty mapping or list still counts
    as a record. Only ``None``, ``False``, ``0`` and ``""`` count as absent.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (str, int, float)):
        return bool(value)
    return True


def implements(model: Any, method: str) -> bool:
    return callable(getattr(model, method, None))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_aware(value: datetime) -> datetime:
    """Treat naive datetimes coming from the model as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(expires_at: datetime) -> bool:
    return as_aware(expires_at) < utcnow()
