"""
ghgcore Determinism Module - Reproducible timestamps, hashes and arithmetic

Emission totals are reported to regulators, so the same inputs must always
produce the same numbers and the same provenance hash.

Features:
- Freezable UTC clock used for every timestamp the engines emit
- SHA-256 content hashing over canonical JSON for provenance
- Decimal conversion that goes through ``str`` so floats do not leak binary noise
- ROUND_HALF_UP rounding for reported totals and scores

Author: ghgcore maintainers
Date: 2026-10-16
"""

import hashlib
import json
import math
import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional


class DeterministicClock:
    """
    A UTC clock that can be frozen for tests and audit replays.

    Timestamps are truncated to whole seconds.
    """

    _instance = None
    _lock = threading.Lock()
    _frozen_time: Optional[datetime] = None

    def __new__(cls):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
            return cls._instance

    @classmethod
    def now(cls, tz=None) -> datetime:
        """
        Get current time, either real or frozen.

        Args:
            tz: Timezone info (defaults to UTC)

        Returns:
            Current datetime
        """
        instance = cls()
        if instance._frozen_time is not None:
            if tz is not None:
                return instance._frozen_time.astimezone(tz)
            return instance._frozen_time
        return datetime.now(tz or timezone.utc).replace(microsecond=0)

    @classmethod
    def utcnow(cls) -> datetime:
        """Get current UTC time."""
        return cls.now(timezone.utc)

    @classmethod
    def freeze(cls, frozen_time: Optional[datetime] = None):
        """
        Freeze clock at a specific time.

        Naive datetimes are interpreted as UTC.

        Args:
            frozen_time: Time to freeze at (defaults to current time)
        """
        instance = cls()
        if frozen_time is None:
            frozen_time = datetime.now(timezone.utc).replace(microsecond=0)
        elif frozen_time.tzinfo is None:
            frozen_time = frozen_time.replace(tzinfo=timezone.utc)
        instance._frozen_time = frozen_time

    @classmethod
    def unfreeze(cls):
        """Unfreeze the clock."""
        cls()._frozen_time = None

    @classmethod
    @contextmanager
    def frozen(cls, frozen_time: Optional[datetime] = None):
        """
        Context manager for temporarily freezing time.

        Usage:
            with DeterministicClock.frozen(datetime(2026, 1, 1)):
                result = engine.validate(request)
        """
        cls.freeze(frozen_time)
        try:
            yield
        finally:
            cls.unfreeze()


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def content_hash(content: Any) -> str:
    """
    Generate SHA-256 hash of content for provenance tracking.

    Dicts and lists are serialized as canonical JSON (sorted keys), with
    Decimals written as strings so that precision is part of the hash.

    Args:
        content: str, bytes, or any JSON-like structure

    Returns:
        Full SHA-256 hash hex string
    """
    if isinstance(content, bytes):
        payload = content
    elif isinstance(content, str):
        payload = content.encode("utf-8")
    else:
        payload = json.dumps(
            content, sort_keys=True, ensure_ascii=True, default=_json_default
        ).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def safe_decimal(value: Any) -> Decimal:
    """
    Convert a numeric value to Decimal without float artifacts.

    Args:
        value: int, float, str or Decimal

    Returns:
        Decimal value

    Raises:
        TypeError: If value is None, a bool, or not numeric
        ValueError: If value is NaN, infinite, or an unparseable string

    Example:
        >>> safe_decimal(0.1) + safe_decimal(0.2)
        Decimal('0.3')
    """
    if value is None or isinstance(value, bool):
        raise TypeError(f"Cannot convert {value!r} to Decimal")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Cannot convert {value!r} to Decimal")
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as e:
            raise ValueError(f"Cannot convert {value!r} to Decimal") from e
    else:
        raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")

    if not result.is_finite():
        raise ValueError(f"Cannot convert {value!r} to Decimal")
    return result


def round_for_reporting(value: Any, decimal_places: int = 3) -> Decimal:
    """
    Round value for regulatory reporting.

    Emission totals are reported in metric tons CO2e to 3 decimal places.

    Example:
        >>> round_for_reporting(123.4565)
        Decimal('123.457')
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return safe_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


def round_half_up(value: Any) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(safe_decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def utcnow() -> datetime:
    """Get current deterministic UTC time."""
    return DeterministicClock.utcnow()


__all__ = [
    "DeterministicClock",
    "content_hash",
    "safe_decimal",
    "round_for_reporting",
    "round_half_up",
    "utcnow",
]
