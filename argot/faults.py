"""
Argot faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every registration and
  matching issue. Codes are grouped by domain to keep logs/searches predictable.
- ParserException / ParserWarning: base types that carry message + options and
  know how to render themselves with rich.
- ParserExit: exception group collecting every fault of a deferred pass.
- trigger(): central entry point to surface any fault (respecting shell/deferred/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Taxonomy
- registration (always raised, the registry is left untouched)
  • DuplicatedPositionalError, ShortNameError, InvalidAliasError, KeyCollisionError
- matching (raised, collected, or printed depending on the registry options)
  • UnknownKeyError, DuplicatedKeyError, MissingValueError,
    TooManyPositionalsError, UncastableValueError (strict mode only)
- warnings
  • ConversionWarning: a token could not be converted; the value stays absent.

Host integration
- __codes__ in __main__: remap codes to custom labels (see FaultCode.normalize()).
- __styles__ in __main__: override rendering styles.
- __prog__ in __main__: program name shown in headers.
- __docs__ in __main__: documentation strings per code (see getdoc()).
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - registration (211xx)
      • DUPLICATED_POSITIONAL, SHORT_NAME, INVALID_ALIAS, KEY_COLLISION
    - matching (221xx)
      • UNKNOWN_KEY, DUPLICATED_KEY, MISSING_VALUE, TOO_MANY_POSITIONALS,
        UNCASTABLE_VALUE
    - warnings (231xx)
      • CONVERSION_FAILED
    """
    # --- registration errors (211xx) ---
    DUPLICATED_POSITIONAL       = 21101
    SHORT_NAME                  = 21102
    INVALID_ALIAS               = 21103
    KEY_COLLISION               = 21104

    # --- matching errors (221xx) ---
    UNKNOWN_KEY                 = 22101
    DUPLICATED_KEY              = 22102
    MISSING_VALUE               = 22103
    TOO_MANY_POSITIONALS        = 22104
    UNCASTABLE_VALUE            = 22105

    # --- warnings (231xx) ---
    CONVERSION_FAILED           = 23101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, message, palette, /):
    """
    build the rich renderable shared by exceptions and warnings.

    palette keys: "code", "title", "message", "hint-arrow", "hint".
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)

    styles = defaultdict(str, {"prog-name": "bold #E6E6F0"} | palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if colorful else "")

    prog = text(getattr(main, "__prog__", options.get("prog", "argot")), "prog-name")

    parts = ["[ ", prog]
    if (code := options.get("code")) is not None:
        parts += [" — ", text(code.normalize(), "code")]
    if title := options.get("title"):
        parts += [" | ", text(title.title(), "title")]
    parts.append(" ]")

    header = Text.assemble(*parts)
    body = [text(message, "message")]
    if hint := options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if options.get("fancy", False):
        width = console.width - 4
        try:
            width = int(width * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(*body), title=header, title_align="left", width=width)

    return Group(header, *body)


class ParserException(Exception):
    """
    base type of every registration and matching fault.

    options is a read-only mapping with the context of the fault, typically:
    title, code, hint, input, index, argument, prog, and the runtime flags
    shell/fancy/colorful/deferred of the registry that raised it.
    """

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__}() message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, self.message, {
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class RegistrationError(ParserException): ...
class DuplicatedPositionalError(RegistrationError): ...
class ShortNameError(RegistrationError): ...
class InvalidAliasError(RegistrationError): ...
class KeyCollisionError(RegistrationError): ...

class MatchingError(ParserException): ...
class UnknownKeyError(MatchingError): ...
class DuplicatedKeyError(MatchingError): ...
class MissingValueError(MatchingError): ...
class TooManyPositionalsError(MatchingError): ...
class UncastableValueError(MatchingError): ...


class ParserWarning(Warning):
    """
    base type of non-fatal faults; same options contract as ParserException.
    """

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__}() message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, self.message, {
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConversionWarning(ParserWarning): ...


class ParserExit(ExceptionGroup):
    """
    every matching fault of one deferred pass, in encounter order.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad exit", exceptions)

    def __init__(self, exceptions, **options):
        super().__init__("bad exit", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            return Text(str(fragment), styles[style] if colorful else "")

        prog = text(getattr(main, "__prog__", self.options.get("prog", "argot")), "prog-name")
        header = Text.assemble("[ ", prog, " — ", text(self.message.title(), "title"), " ]")

        renders = [copy.replace(exception, ratio=2/3) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - outside shell mode exceptions are raised and warnings go through the warnings module;
      in shell mode both are rendered on stderr with rich.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode members and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ParserException",
    "RegistrationError",
    "DuplicatedPositionalError",
    "ShortNameError",
    "InvalidAliasError",
    "KeyCollisionError",
    "MatchingError",
    "UnknownKeyError",
    "DuplicatedKeyError",
    "MissingValueError",
    "TooManyPositionalsError",
    "UncastableValueError",
    "ParserWarning",
    "ConversionWarning",
    "ParserExit",
    "trigger",
    "getdoc",
)
