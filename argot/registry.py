"""
Argot registry: register arguments, then match a token stream against them.

What this module provides
- Registry: owns the positional slots and the keyed table shared by KeyValue
  and Flag arguments, enforces the registration invariants, and runs the
  left-to-right token matcher.
- Failure: record of one token that could not be converted.
- invoke(registry, prompt): convenience runner.

Namespaces
- Positional names are unique among positionals.
- Long names and aliases of KeyValue and Flag arguments share ONE table: a key
  (name or alias) can never be reused by another keyed argument, whatever its kind.
- Keyed long names are longer than one character and aliases are exactly one
  character, so "--x" and "-x" can never mean two different things.

Matching (greedy, left to right, never backtracks)
- "--name" / "-alias" resolving to a KeyValue: the next token is its value, taken
  verbatim even when it looks like a key.
- "--name" / "-alias" resolving to a Flag: presence only, consumes nothing.
- anything else starting with "-": unknown key.
- bare tokens: the next unconsumed positional slot, in registration order.
- no check is done afterwards for unfilled slots or absent keys; use found().

Handles
- Every register_*() call returns an integer handle (its index in registration
  order). registry[handle], registry.found(handle), and registry.take_value(handle)
  give arena-style access for callers that do not want to keep the argument objects.

Quick start
    from argot import Registry, Positional, KeyValue, Flag

    registry = Registry("tool")
    path = Positional("path")
    count = registry.register(KeyValue("count", "c", type=int))
    verbose = Flag("verbose", "v")
    registry.register(path)
    registry.register(verbose)

    registry.parse(["in.txt", "-c", "5", "-v"])
    path.take_value(), registry.take_value(count), verbose.found()
    # ('in.txt', 5, True)
"""
import copy
import difflib
import logging
import os.path
import shlex
import sys
from collections import deque
from collections.abc import Iterable
from typing import NamedTuple

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .arguments import Positional, KeyValue, Flag
from .faults import *
from .utils import *

_LOGGER = logging.getLogger(__name__)

console = Console(stderr=True)


class Failure(NamedTuple):
    """
    one token that could not be converted during the last pass.

    index is the 1-based position of the token in the stream.
    """
    argument: Positional | KeyValue
    token: str
    index: int
    error: Exception


def _describe(argument):
    # "positional 'path'", "key-value 'count'", "flag 'verbose'"
    return "%s %r" % (type(argument).__typename__, argument.name)


class Registry:
    """
    Argument registry and token matcher.

    Runtime options (keyword-only)
    - shell: print faults with rich on stderr and exit instead of raising.
    - fancy: render faults inside a panel.
    - colorful: style the rendering.
    - deferred: collect every matching fault of a pass and raise them together
      as a ParserExit once the whole stream was walked.
    - strict: a token that cannot be converted is a fault (UncastableValueError)
      instead of a ConversionWarning.
    """

    prog = mirror("prog")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")
    deferred = mirror("deferred")
    strict = mirror("strict")

    positionals = mirror("positionals")
    keys = mirror("keys")
    arguments = mirror("arguments")

    def __init__(self, prog=Unset, /, *, shell=False, fancy=False, colorful=True, deferred=False, strict=False):
        if not isinstance(prog, str | Unset):
            raise TypeError("registry 'prog' must be a string")
        elif isinstance(prog, str) and not (prog := prog.strip()):
            raise ValueError("registry 'prog' cannot be empty")

        self._prog = coalesce(prog, os.path.basename(sys.argv[0]) or "argot")
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._deferred = bool(deferred)
        self._strict = bool(strict)

        self._positionals = []
        self._names = set()
        self._keys = {}
        self._arguments = []

        self._faults = []
        self._failures = []

    @property
    def failures(self):
        """
        conversion failures of the last pass, in encounter order.
        """
        return list(self._failures)

    def _adopt(self, argument):
        self._arguments.append(argument)
        _LOGGER.debug("registered %s as handle %d", _describe(argument), len(self._arguments) - 1)
        return len(self._arguments) - 1

    def _check_unregistered(self, argument):
        if argument in self._arguments:
            raise ValueError(f"{_describe(argument)} is already registered")

    def register_positional(self, argument, /):
        """
        append a positional slot; its name must be unused among positionals.
        """
        if not isinstance(argument, Positional):
            raise TypeError("register_positional() argument must be a positional argument")
        self._check_unregistered(argument)

        if (name := argument.name) in self._names:
            raise DuplicatedPositionalError(
                "positional argument %r is already registered" % name,
                title="duplicated positional",
                code=FaultCode.DUPLICATED_POSITIONAL,
                input=name,
                argument=argument,
                prog=self._prog,
                hint="give every positional argument its own name",
                docs=getdoc(FaultCode.DUPLICATED_POSITIONAL),
            )

        self._names.add(name)
        self._positionals.append(argument)
        return self._adopt(argument)

    def _register_keyed(self, argument):
        name = argument.name
        alias = argument.short_key()

        # every check runs before the table is touched: a failure leaves it as it was
        if len(name) <= 1:
            raise ShortNameError(
                "%s name must be longer than one character" % _describe(argument),
                title="name too short",
                code=FaultCode.SHORT_NAME,
                input=name,
                argument=argument,
                prog=self._prog,
                hint="use a long name and pass %r as the alias instead" % name,
                docs=getdoc(FaultCode.SHORT_NAME),
            )

        if alias is not None and len(alias) != 1:
            raise InvalidAliasError(
                "%s alias %r must be exactly one character" % (_describe(argument), alias),
                title="invalid alias",
                code=FaultCode.INVALID_ALIAS,
                input=alias,
                argument=argument,
                prog=self._prog,
                hint="use a single character such as %r" % name[0],
                docs=getdoc(FaultCode.INVALID_ALIAS),
            )

        for key in (name, alias):
            if key is not None and key in self._keys:
                raise KeyCollisionError(
                    "key %r of %s is already taken by %s" % (key, _describe(argument), _describe(self._keys[key])),
                    title="key collision",
                    code=FaultCode.KEY_COLLISION,
                    input=key,
                    argument=argument,
                    holder=self._keys[key],
                    prog=self._prog,
                    hint="names and aliases of key-value and flag arguments share one namespace",
                    docs=getdoc(FaultCode.KEY_COLLISION),
                )

        self._keys[name] = argument
        if alias is not None:
            self._keys[alias] = argument
        return self._adopt(argument)

    def register_key_value(self, argument, /):
        """
        add a key-value argument under its long name and, if any, its alias.
        """
        if not isinstance(argument, KeyValue):
            raise TypeError("register_key_value() argument must be a key-value argument")
        self._check_unregistered(argument)
        return self._register_keyed(argument)

    def register_flag(self, argument, /):
        """
        add a flag argument under its long name and, if any, its alias.
        """
        if not isinstance(argument, Flag):
            raise TypeError("register_flag() argument must be a flag argument")
        self._check_unregistered(argument)
        return self._register_keyed(argument)

    def register(self, argument, /):
        """
        register any argument kind; returns its handle.
        """
        match argument:
            case Positional():
                return self.register_positional(argument)
            case KeyValue():
                return self.register_key_value(argument)
            case Flag():
                return self.register_flag(argument)
            case _:
                raise TypeError("register() argument must be a positional, key-value, or flag argument")

    def __getitem__(self, handle, /):
        if not isinstance(handle, int) or isinstance(handle, bool):
            raise TypeError("registry handles must be integers")
        if not 0 <= handle < len(self._arguments):
            raise IndexError("unknown registry handle %d" % handle)
        return self._arguments[handle]

    def __len__(self):
        return len(self._arguments)

    def found(self, handle, /):
        return self[handle].found()

    def take_value(self, handle, /):
        match argument := self[handle]:
            case Positional() | KeyValue():
                return argument.take_value()
            case _:
                raise TypeError("%s carries no value; use found()" % _describe(argument))

    def trigger(self, fault, /, **options):
        """
        surface a matching fault with this registry's runtime options.

        deferred registries keep the fault for _finalize(); others hand it to
        faults.trigger() right away (raise, warn, or print and exit).
        """
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        fault = copy.replace(
            fault,
            **options,
            prog=self._prog,
            shell=self._shell,
            fancy=self._fancy,
            colorful=self._colorful,
            deferred=self._deferred
        )
        if self._deferred:
            return self._faults.append(fault)
        if self._shell and isinstance(fault, ParserException):
            console.print(Text("usage: " + self.usage))
        trigger(fault)

    def _convert(self, argument, token, index):
        conversion = argument.parse_token(token)
        if conversion.ok:
            _LOGGER.debug("%s <- %r (token %d)", _describe(argument), token, index)
            return

        self._failures.append(Failure(argument, token, index, conversion.error))
        _LOGGER.debug("%s could not convert %r (token %d): %s", _describe(argument), token, index, conversion.error)

        fault = UncastableValueError if self._strict else ConversionWarning
        code = FaultCode.UNCASTABLE_VALUE if self._strict else FaultCode.CONVERSION_FAILED
        self.trigger(fault(
            "cannot convert %r for %s at %s position" % (token, _describe(argument), ordinal(index)),
            title="uncastable value",
            code=code,
            input=token,
            index=index,
            argument=argument,
            error=conversion.error,
            hint=str(conversion.error) or "check the expected type of %s" % _describe(argument),
            docs=getdoc(code),
        ))

    def _match(self, tokens):
        """
        walk the token deque once, dispatching every token.

        index is the 1-based position of the current token; value tokens
        consumed by a key-value key advance it too.
        """
        cursor = 0
        index = 0

        while tokens:
            token = tokens.popleft()
            index += 1

            if not token.startswith("-"):
                if cursor >= len(self._positionals):
                    self.trigger(TooManyPositionalsError(
                        "unexpected positional argument %r at %s position" % (token, ordinal(index)),
                        title="too many positionals",
                        code=FaultCode.TOO_MANY_POSITIONALS,
                        input=token,
                        index=index,
                        hint="%s accepts %d positional argument(s)" % (self._prog, len(self._positionals)),
                        docs=getdoc(FaultCode.TOO_MANY_POSITIONALS),
                    ))
                    continue
                self._convert(self._positionals[cursor], token, index)
                cursor += 1
                continue

            key = token[2:] if token.startswith("--") else token[1:]

            match argument := self._keys.get(key):
                case KeyValue():
                    if argument.found():
                        self.trigger(DuplicatedKeyError(
                            "%s at %s position was already provided" % (_describe(argument), ordinal(index)),
                            title="duplicated key",
                            code=FaultCode.DUPLICATED_KEY,
                            input=token,
                            index=index,
                            argument=argument,
                            hint="keep a single %r; each key can be given only once" % token,
                            docs=getdoc(FaultCode.DUPLICATED_KEY),
                        ))
                        # the value of a rejected key is not a positional either
                        if tokens:
                            tokens.popleft()
                            index += 1
                        continue

                    try:
                        value = tokens.popleft()
                    except IndexError:
                        self.trigger(MissingValueError(
                            "%s at %s position expects a value" % (_describe(argument), ordinal(index)),
                            title="missing value",
                            code=FaultCode.MISSING_VALUE,
                            input=token,
                            index=index,
                            argument=argument,
                            hint="pass the value right after the key (for example: %s <value>)" % token,
                            docs=getdoc(FaultCode.MISSING_VALUE),
                        ))
                        break
                    index += 1
                    self._convert(argument, value, index)

                case Flag():
                    if argument.found():
                        self.trigger(DuplicatedKeyError(
                            "%s at %s position was already provided" % (_describe(argument), ordinal(index)),
                            title="duplicated key",
                            code=FaultCode.DUPLICATED_KEY,
                            input=token,
                            index=index,
                            argument=argument,
                            hint="keep a single %r; each key can be given only once" % token,
                            docs=getdoc(FaultCode.DUPLICATED_KEY),
                        ))
                        continue
                    argument.parse_token()
                    _LOGGER.debug("%s set (token %d)", _describe(argument), index)

                case _:
                    suggestions = difflib.get_close_matches(key, self._keys.keys(), 5)
                    try:
                        hint = "did you mean %r?" % ("-" * (1 + (len(suggestions[0]) > 1)) + suggestions[0])
                    except IndexError:
                        hint = "run with a registered key; known keys: %s" % (
                            ", ".join(sorted(self._keys)) or "none"
                        )
                    self.trigger(UnknownKeyError(
                        "unknown key %r at %s position" % (token, ordinal(index)),
                        title="unknown key",
                        code=FaultCode.UNKNOWN_KEY,
                        input=token,
                        key=key,
                        index=index,
                        suggestions=suggestions,
                        hint=hint,
                        docs=getdoc(FaultCode.UNKNOWN_KEY),
                    ))

    def _finalize(self):
        """
        surface the faults collected by a deferred pass.

        warnings are emitted first; remaining exceptions are raised (or printed)
        together as one ParserExit.
        """
        exceptions = []
        warnings = []

        for fault in self._faults:
            if isinstance(fault, ParserException):
                exceptions.append(fault)
            elif isinstance(fault, ParserWarning):
                warnings.append(fault)
            else:
                raise RuntimeError("unexpected fault")

        for warning in warnings:
            trigger(warning, deferred=False)

        if not exceptions:
            return

        if self._shell:
            console.print(Text("usage: " + self.usage))

        trigger(
            ParserExit(exceptions),
            prog=self._prog,
            shell=self._shell,
            fancy=self._fancy,
            colorful=self._colorful,
            deferred=self._deferred
        )

    def parse(self, tokens=Unset, /):
        """
        match a token stream against the registered arguments.

        tokens
        - Unset: the live process arguments (sys.argv[1:]).
        - str: a shell-like string, split with shlex.split.
        - Iterable[str]: used verbatim, in order.

        results are read afterwards from the argument objects (or their handles).
        """
        if tokens is Unset:
            tokens = sys.argv[1:]
        elif isinstance(tokens, str):
            tokens = shlex.split(tokens)
        elif isinstance(tokens, Iterable):
            tokens = list(tokens)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")

        self._faults.clear()
        self._failures.clear()

        _LOGGER.debug("matching %d token(s) for %s", len(tokens), self._prog)
        self._match(deque(tokens))
        self._finalize()

    def __invoke__(self, prompt=Unset, /):
        self.parse(prompt)

    @property
    def usage(self):
        """
        one-line usage, e.g. "tool [--count|-c COUNT] [--verbose|-v] PATH".
        """
        parts = [self._prog]
        for argument in self._arguments:
            if isinstance(argument, Positional):
                continue
            names = "--" + argument.name
            if alias := argument.short_key():
                names += "|-" + alias
            if isinstance(argument, KeyValue):
                names += " " + argument.name.upper().replace("-", "_")
            parts.append("[%s]" % names)
        parts.extend(argument.name.upper() for argument in self._positionals)
        return " ".join(parts)

    def __rich__(self):
        styles = {
            "usage": "bold #E6E6F0",
            "key": "bold #00E5FF",
            "descr": "#C8C8D0",
        } if self._colorful else {}

        table = Table(box=ROUNDED, show_header=False, expand=False)
        table.add_column("argument", style=styles.get("key", ""), no_wrap=True)
        table.add_column("description", style=styles.get("descr", ""))

        for argument in self._arguments:
            if isinstance(argument, Positional):
                label = argument.name.upper()
            else:
                label = ", ".join(filter(None, (
                    "-" + argument.short_key() if argument.short_key() else None,
                    "--" + argument.name,
                )))
            table.add_row(label, argument.descr or "")

        return Group(Text("usage: " + self.usage, styles.get("usage", "")), table)

    def __rich_repr__(self):
        yield "prog", self._prog
        yield "positionals", self.positionals
        yield "keys", self.keys

    def __repr__(self):
        return "registry(prog=%r, positionals=%d, keys=%d)" % (self._prog, len(self._positionals), len(self._keys))


def invoke(object, prompt=Unset, /):
    """
    convenience runner: object.__invoke__(prompt).

    prompt follows Registry.parse(): Unset, a shell-like string, or an iterable of strings.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        object.__invoke__(prompt)
        return

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Registry",
    "Failure",
    "invoke",
)
