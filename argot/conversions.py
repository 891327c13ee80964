"""
Argot typed value conversion.

Every value-bearing argument (Positional, KeyValue) carries a converter: any
callable taking the raw token and producing the typed value. Builtins such as
str, int, float, or pathlib.Path work out of the box.

Outcome contract
- The converter returns a value        → success.
- The converter returns a Conversion   → used as-is (explicit outcome).
- The converter raises any Exception  → failure; the exception is kept as
  Conversion.error and the argument stays absent (int and float raise
  ValueError, decimal.Decimal raises InvalidOperation, and so on).

Examples
    >>> convert(int, "42")
    Conversion(value=42, error=None)
    >>> convert(int, "abc").ok
    False
    >>> convert(boolean, "Yes").value
    True
"""
from typing import NamedTuple

from .utils import Unset


class Conversion(NamedTuple):
    """
    outcome of converting one token.

    value is Unset whenever error is set.
    """
    value: object
    error: Exception | None = None

    @property
    def ok(self):
        return self.error is None

    @classmethod
    def failure(cls, error, /):
        if not isinstance(error, Exception):
            raise TypeError("Conversion.failure() argument must be an exception")
        return cls(Unset, error)


def convert(type, token, /):
    """
    run a converter over a raw token and describe the outcome.
    """
    if not callable(type):
        raise TypeError("convert() first argument must be callable")
    if not isinstance(token, str):
        raise TypeError("convert() second argument must be a string")

    try:
        value = type(token)
    except Exception as exception:
        return Conversion.failure(exception)

    if isinstance(value, Conversion):
        return value
    return Conversion(value)


_TRUTHY = frozenset({"true", "yes", "on", "1"})
_FALSY = frozenset({"false", "no", "off", "0"})


def boolean(token, /):
    """
    convert a textual boolean (true/false, yes/no, on/off, 1/0; case-insensitive).
    """
    lowered = token.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError("invalid boolean literal: %r" % token)


__all__ = (
    "Conversion",
    "convert",
    "boolean",
)
