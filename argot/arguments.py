r"""
Argot argument specifications.

Overview
- Kinds (closed set, sealed against subclassing)
  • Positional[_T]: value-bearing argument bound to bare tokens by arrival order.
  • KeyValue[_T]: value-bearing argument introduced by --name or -alias; takes the next token.
  • Flag: presence-only argument introduced by --name or -alias; takes no token.

- Shared capability record
  • name / descr: read-only metadata (descr is display-only).
  • found(): whether a value (or presence) is currently held.
  • parse_token(...): store the outcome of one token (Flag: presence, no token).
  • reset(): drop whatever is held.

- Value-bearing only (Positional, KeyValue)
  • take_value(): one-shot extraction; the held value is returned and cleared.
  • failure: exception of the last failed conversion, or None.

- Keyed only (KeyValue, Flag)
  • alias / short_key(): optional single-character short form.

Conversion failures never raise from parse_token(): the value is left absent,
the failure is recorded, and the returned Conversion describes what happened.
The registry decides whether that is worth a warning or a fault.

Metadata (sanitized on construction)
- name: str, non-empty after trimming.
- descr: Unset | str | Text, non-empty when provided (becomes None when omitted).
- type: Callable converter (value-bearing kinds only).
- alias: Unset | str (length is checked at registration time).

Examples
    >>> path = Positional("path")
    >>> count = KeyValue[int]("count", "c", type=int, descr="how many")
    >>> verbose = Flag("verbose", "v")
    >>> count.parse_token("5").ok, count.take_value(), count.found()
    (True, 5, False)

Public API
- Classes: Positional, KeyValue, Flag
"""
import functools
import operator
import re

from rich.text import Text

from .conversions import convert
from .utils import *


class ArgumentType(type):
    """
    Metaclass that gives argument kinds stable introspection.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used in messages, usage, and representations.
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the private "_{name}" field (see mirror()).
    - Provide __repr__/__rich_repr__ built from __introspectable__.
    - Seal classes created with sealed=True against subclassing.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, *, sealed=False, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if sealed:
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the metadata shared by every kind.

    - name: required string, trimmed, non-empty.
    - descr: optional short description. Unset becomes None; a provided value
      must be a non-empty string (or rich Text).

    Mutates the metadata dict in place.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_keyed_metadata(cls, metadata, /):
    """
    Internal: validate the long name and alias of keyed kinds (KeyValue, Flag).

    Neither may start with "-": the matcher strips the markers before lookup, so
    such a key could never be reached. Length rules (long name > 1, alias == 1)
    belong to the registry because they are namespace rules, and a registry
    failure must leave both sides untouched.
    """
    if metadata["name"].startswith("-"):
        raise ValueError(f"{cls.__typename__} 'name' cannot start with '-'")

    if not isinstance(alias := metadata["alias"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'alias' must be a string")
    elif isinstance(alias, str) and alias.startswith("-"):
        raise ValueError(f"{cls.__typename__} 'alias' cannot start with '-'")


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate the converter of value-bearing kinds (Positional, KeyValue).
    """
    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")


class _Parametric:
    """
    Internal: value storage shared by Positional and KeyValue.

    The held value is Unset when absent; take_value() materializes it as None.
    """

    def found(self):
        return self._value is not Unset

    def take_value(self):
        value, self._value = self._value, Unset
        return coalesce(value)

    def parse_token(self, token, /):
        conversion = convert(self._type, token)
        self._value = conversion.value
        self._failure = conversion.error
        return conversion

    def reset(self):
        self._value = Unset
        self._failure = None


class Positional[_T](_Parametric, metaclass=ArgumentType, sealed=True):
    """
    Positional, value-bearing argument.

    Bound to the next bare token in registration order. The converter given as
    'type' turns the raw token into the value (str by default).
    """

    __introspectable__ = (
        "name",
        "type",
        "descr",
        "failure",
    )

    def __init__(self, name, /, type=str, descr=Unset):
        metadata = {
            "name": name,
            "type": type,
            "descr": descr,
        }
        _sanitize_metadata(Positional, metadata)
        _sanitize_parametric_metadata(Positional, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, coalesce(object))
        self._value = Unset
        self._failure = None


class KeyValue[_T](_Parametric, metaclass=ArgumentType, sealed=True):
    """
    Named, value-bearing argument.

    Introduced by "--name" or "-alias" and fed by exactly one following token,
    taken verbatim even when it looks like another key.
    """

    __introspectable__ = (
        "name",
        "alias",
        "type",
        "descr",
        "failure",
    )

    def __init__(self, name, alias=Unset, /, type=str, descr=Unset):
        metadata = {
            "name": name,
            "alias": alias,
            "type": type,
            "descr": descr,
        }
        _sanitize_metadata(KeyValue, metadata)
        _sanitize_keyed_metadata(KeyValue, metadata)
        _sanitize_parametric_metadata(KeyValue, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, coalesce(object))
        self._value = Unset
        self._failure = None

    def short_key(self):
        return self._alias


class Flag(metaclass=ArgumentType, sealed=True):
    """
    Named, presence-only argument.

    Introduced by "--name" or "-alias"; consumes no token and never fails.
    """

    __introspectable__ = (
        "name",
        "alias",
        "descr",
    )

    def __init__(self, name, alias=Unset, /, descr=Unset):
        metadata = {
            "name": name,
            "alias": alias,
            "descr": descr,
        }
        _sanitize_metadata(Flag, metadata)
        _sanitize_keyed_metadata(Flag, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, coalesce(object))
        self._value = False

    def found(self):
        return self._value

    def parse_token(self):
        self._value = True

    def reset(self):
        self._value = False

    def short_key(self):
        return self._alias


__all__ = (
    "Positional",
    "KeyValue",
    "Flag",
)

# The metaclass is an implementation detail; keep it out of star-imports and docs.
del ArgumentType
