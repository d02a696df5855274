"""
Argot faults (errors and warnings) and rendering.

Scope
- ErrorType / ErrorCode: what kind of token failed and why. Codes are stable
  numeric identifiers grouped by domain, so logs and searches stay predictable.
- ParseError: the positioned error value handed back by the parsing engine.
  It is a plain value (never raised by the engine itself); its position is the
  index of the offending token in the original argv.
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased and actionable way.
- ParseFailure: the exception that surfaces a ParseError at the API edge.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: every message names the ordinal position of the
  offending token (“at third position”).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.

Integration
- The engine returns Failure(ParseError); Configuration.invoke() wraps it into a
  ParseFailure and calls trigger(). In non-shell mode the exception is raised; in
  shell mode it is rendered via rich on stderr and the process exits with status 1.
"""
import enum
import functools
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class ErrorType(enum.Enum):
    """
    the kind of declaration an error is about.
    """
    ARGUMENT = "argument"
    FLAG     = "flag"
    COMMAND  = "command"
    NONE     = "none"


class ErrorCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • NO_GLOBAL_COMMAND
    - tokens (1111x)
      • SYNTAX_ERROR, BAD_STRING
    - parameters (1112x)
      • UNKNOWN_PARAMETER, FLAG_WITH_VALUE, MISSING_VALUE, OUT_OF_BOUND, INVALID_VALUE
    - post validation (1113x)
      • REQUIRED_ARGUMENT
    - warnings (12xxx)
      • COLLIDING_NAME
    """
    # --- routing errors (11xxx) ---
    NO_GLOBAL_COMMAND  = 11101

    # --- token errors (11xxx) ---
    SYNTAX_ERROR       = 11111
    BAD_STRING         = 11112

    # --- parameter errors (11xxx) ---
    UNKNOWN_PARAMETER  = 11121
    FLAG_WITH_VALUE    = 11122
    MISSING_VALUE      = 11123
    OUT_OF_BOUND       = 11124
    INVALID_VALUE      = 11125

    # --- post validation errors (11xxx) ---
    REQUIRED_ARGUMENT  = 11131

    # --- warnings (12xxx) ---
    COLLIDING_NAME     = 12111

    @property
    def title(self):
        return self.name.lower().replace("_", " ")

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


@functools.cache
def _ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


class ParseError:
    """
    positioned error produced by the parsing engine.

    fields
    - argument: the name (or raw token) the error is about; "" when there is none.
    - value: the offending raw value, when there is one.
    - type: ErrorType of the declaration involved.
    - code: ErrorCode.
    - position: index of the offending token in the original argv. stages
      build it up while unwinding: each one adds the distance it walked via
      shifted(), so sub-parsers can report 0 for "the token I was given".
    - cause: the exception raised by a validator, when there was one.

    position 0 is the program token and is never blamed; ordinals in messages
    therefore count from the first token after the program.
    """
    __slots__ = ("argument", "value", "type", "code", "position", "cause")

    def __init__(self, argument, value, type, code, position=0, *, cause=None):
        if not isinstance(type, ErrorType):
            raise TypeError("ParseError() 'type' must be an error-type")
        if not isinstance(code, ErrorCode):
            raise TypeError("ParseError() 'code' must be an error-code")
        self.argument = argument
        self.value = value
        self.type = type
        self.code = code
        self.position = position
        self.cause = cause

    def shifted(self, offset, /):
        return ParseError(
            self.argument,
            self.value,
            self.type,
            self.code,
            self.position + offset,
            cause=self.cause
        )

    @property
    def hint(self):
        match self.code:
            case ErrorCode.NO_GLOBAL_COMMAND:
                return "start with one of the configured command names"
            case ErrorCode.SYNTAX_ERROR:
                return "use one dash for short names (-x) and two for long names (--name)"
            case ErrorCode.BAD_STRING:
                return "make sure the input is valid utf-8"
            case ErrorCode.UNKNOWN_PARAMETER:
                return "check the spelling, or whether it belongs to another command"
            case ErrorCode.FLAG_WITH_VALUE:
                return "remove everything from '=' (for example: --%s)" % self.argument
            case ErrorCode.MISSING_VALUE:
                return "add a value after '=' for long names, or as the next input for short ones"
            case ErrorCode.OUT_OF_BOUND:
                return "give it fewer times"
            case ErrorCode.INVALID_VALUE:
                return "pass a value the %s accepts" % self.type.value
            case ErrorCode.REQUIRED_ARGUMENT:
                return "add it (for example: --%s=<value>)" % self.argument
        return "check the input"

    def as_dict(self):
        return {
            "argument": self.argument,
            "value": self.value,
            "type": self.type.value,
            "code": self.code.name.lower(),
            "position": self.position,
        }

    def __str__(self):
        at = "at %s position" % _ordinal(self.position) if self.position > 0 else "at start"
        match self.code:
            case ErrorCode.NO_GLOBAL_COMMAND:
                return "no command recognized %s and no global command is configured" % at
            case ErrorCode.SYNTAX_ERROR:
                return "bad form of input %r %s" % (self.argument, at)
            case ErrorCode.BAD_STRING:
                return "malformed unicode in input %r %s" % (self.argument, at)
            case ErrorCode.UNKNOWN_PARAMETER:
                return "unknown %s %r %s" % (self._kind, self.argument, at)
            case ErrorCode.FLAG_WITH_VALUE:
                return "flag %r %s cannot have an inline value" % (self.argument, at)
            case ErrorCode.MISSING_VALUE:
                return "missing value for argument %r %s" % (self.argument, at)
            case ErrorCode.OUT_OF_BOUND:
                return "%s %r %s is given more times than allowed" % (self.type.value, self.argument, at)
            case ErrorCode.INVALID_VALUE:
                return "invalid value %r for %s %r %s" % (self.value, self.type.value, self.argument, at)
            case ErrorCode.REQUIRED_ARGUMENT:
                return "required argument %r was never given" % self.argument
        return "%s %s" % (self.code.title, at)

    @property
    def _kind(self):
        return "parameter" if self.type is ErrorType.ARGUMENT else self.type.value

    def __eq__(self, other):
        if not isinstance(other, ParseError):
            return NotImplemented
        return (
            (self.argument, self.value, self.type, self.code, self.position) ==
            (other.argument, other.value, other.type, other.code, other.position)
        )

    def __hash__(self):
        return hash((self.argument, self.value, self.type, self.code, self.position))

    def __rich_repr__(self):
        yield "argument", self.argument
        yield "value", self.value
        yield "type", self.type
        yield "code", self.code
        yield "position", self.position

    def __repr__(self):
        return "parse-error(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def _styled(options, defaults):
    """
    shared text helpers for fault renderers (styles can be overridden via __styles__).
    """
    styles = defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))
    colorful = options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), styles[style])

    return text


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        text = _styled(self.options, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "underline #00E5FF dim",
        })
        return _render(self, text, "error-title", "error-message")

    def __trigger__(self):
        if not self.options.get("shell"):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ParseFailure(CommandException):
    """
    a ParseError surfaced as an exception (see Configuration.invoke).
    """

    def __init__(self, error, /, **options):
        if not isinstance(error, ParseError):
            raise TypeError("ParseFailure() argument must be a parse-error")
        super().__init__(
            str(error),
            **{
                "title": error.code.title,
                "code": error.code,
                "hint": error.hint,
                "docs": getdoc(error.code),
            } | options
        )
        self.error = error

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.error, **{**self.options, **overrides})


class CommandWarning(ABC, Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        text = _styled(self.options, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
            "docs": "underline #FFB400 dim",
        })
        return _render(self, text, "warning-title", "warning-message")

    def __trigger__(self):
        if not self.options.get("shell"):
            return warnings.warn(self, stacklevel=self.options.get("stacklevel", 2))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class CollidingNameWarning(CommandWarning): ...


def _render(fault, text, title, message):
    options = fault.options
    main = __import__("__main__")

    prog = text(coalesce(options.get("program", Unset), getattr(main, "__prog__", "argot")), "prog-name")
    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(options["code"].normalize(), "code"),
        " | ",
        text(options["title"].title(), title),
        " ]"
    )
    body = [text(fault.message, message)]
    if hint := options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
    if docs := options.get("docs"):
        body.append(text(docs, "docs"))

    if options.get("fancy"):
        return Panel(Group(*body), title=header, title_align="left")
    return Group(header, *body)


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise, exceptions
      are raised and warnings go through the warnings module.

    typical options
    - program, shell, fancy, colorful, title, code, hint, docs.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    return fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are ErrorCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, ErrorCode):
        raise TypeError("getdoc() argument must be an error-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "ErrorType",
    "ErrorCode",
    "ParseError",
    "CommandException",
    "ParseFailure",
    "CommandWarning",
    "CollidingNameWarning",
    "trigger",
    "getdoc",
)
