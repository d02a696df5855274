"""
Argot parsing engine.

Pipeline
- resolve(): pick the Command whose grammar governs the tokens after the
  program name (explicit command token, or the configured global command).
- parse_tokens(): walk the command's tokens, routing each one to
  parse_long() ('--name', '--name=value'), parse_short() ('-x', '-x value',
  '-xyz') or positional input, and commit what they return into a Tally.
- validate_required(): fail when a required argument never occurred.

Every stage returns an Outcome; nothing here raises for bad user input. The
first Failure travels back unchanged except for its position: sub-parsers
report positions relative to the token they were handed, and each enclosing
stage adds the distance it walked, so the final ParseError.position is the
index of the offending token in the original argv.

Commit granularity
- parse_long()/parse_short() only describe what they found (a Delta). The
  Tally applies it afterwards, so a short cluster that fails halfway ('-abX')
  commits nothing.
"""
from collections import defaultdict

from .faults import ErrorCode, ErrorType, ParseError
from .outcome import Success, Failure
from .results import ParsedArgument, ParsedFlag, ParsedCommand, ParseResult
from .specs import Argument, Flag
from .unicode import codepoints, decode_leading, encode
from .utils import Unset, UnsetType


class Cursor:
    """
    one-way position over the tokens of a command stream.

    the classifier loop owns the cursor and hands it to parse_short(), the
    only callee allowed to move it past the current token (to take the value
    of a short argument).
    """
    __slots__ = ("_tokens", "_index")

    def __init__(self, tokens, index=0):
        self._tokens = tuple(tokens)
        self._index = index

    @property
    def index(self):
        return self._index

    @property
    def current(self):
        return self._tokens[self._index]

    def advance(self):
        self._index += 1
        return self

    def take(self):
        """
        consume and return the token after the current one (Unset at the end).
        """
        if self._index + 1 >= len(self._tokens):
            return Unset
        self._index += 1
        return self._tokens[self._index]

    def __bool__(self):
        return self._index < len(self._tokens)

    def __repr__(self):
        return f"cursor(index={self._index!r}, tokens={self._tokens!r})"


class Occurrence:
    """
    one occurrence found by a sub-parser, not yet committed.

    - declaration: the matched Flag/Argument, or Unset for a positional input.
    - value: the raw value (None for flags).
    - offset: distance from the token the sub-parser was handed to the token
      that carried this occurrence (1 for the value of '-x value').
    """
    __slots__ = ("declaration", "value", "offset")

    def __init__(self, declaration, value=None, offset=0):
        self.declaration = declaration
        self.value = value
        self.offset = offset

    def __eq__(self, other):
        if not isinstance(other, Occurrence):
            return NotImplemented
        return (
            (self.declaration, self.value, self.offset) ==
            (other.declaration, other.value, other.offset)
        )

    def __hash__(self):
        return hash((self.declaration, self.value, self.offset))

    def __repr__(self):
        return f"occurrence({self.declaration!r}, value={self.value!r}, offset={self.offset!r})"


class Delta:
    """
    what one token (or one short cluster) adds to the parse.
    """
    __slots__ = ("occurrences",)

    def __init__(self, occurrences=()):
        self.occurrences = tuple(occurrences)

    @classmethod
    def of(cls, declaration, value=None, offset=0):
        return cls((Occurrence(declaration, value, offset),))

    @classmethod
    def input(cls, token):
        return cls.of(Unset, token)

    def __iter__(self):
        return iter(self.occurrences)

    def __len__(self):
        return len(self.occurrences)

    def __eq__(self, other):
        if not isinstance(other, Delta):
            return NotImplemented
        return self.occurrences == other.occurrences

    def __hash__(self):
        return hash(self.occurrences)

    def __repr__(self):
        return f"delta({list(self.occurrences)!r})"


class Tally:
    """
    accumulates committed occurrences for one command.

    - flags: counted; going above 'max' fails with OutOfBound.
    - arguments: counted against 'max', checked by their validator, and only
      the latest value is kept (in the slot of the first occurrence).
    - positional inputs: given to the first argument, in declaration order,
      that still accepts an occurrence.
    """

    def __init__(self, command):
        self._command = command
        self._parameters = []
        self._slots = {}
        self._counts = defaultdict(int)

    def commit(self, delta, /):
        for occurrence in delta:
            match occurrence.declaration:
                case Flag() as flag:
                    outcome = self._flag(flag, occurrence)
                case Argument() as argument:
                    outcome = self._argument(argument, occurrence)
                case UnsetType():
                    outcome = self._input(occurrence)
                case declaration:
                    raise TypeError(f"unexpected declaration {declaration!r}")
            if not outcome:
                return outcome
        return Success(self)

    def parsed(self):
        return ParsedCommand(self._command.longname, self._parameters, command=self._command)

    def _flag(self, flag, occurrence):
        if flag.max is not None and self._counts[flag] >= flag.max:
            return Failure(ParseError(
                flag.longname, None, ErrorType.FLAG, ErrorCode.OUT_OF_BOUND, occurrence.offset
            ))
        self._counts[flag] += 1

        key = ("flag", flag.longname)
        if key in self._slots:
            index = self._slots[key]
            self._parameters[index] = ParsedFlag(flag.longname, self._parameters[index].occurrence + 1)
        else:
            self._slots[key] = len(self._parameters)
            self._parameters.append(ParsedFlag(flag.longname, 1))
        return Success(self)

    def _argument(self, argument, occurrence):
        value = occurrence.value
        if argument.max is not None and self._counts[argument] >= argument.max:
            return Failure(ParseError(
                argument.longname, value, ErrorType.ARGUMENT, ErrorCode.OUT_OF_BOUND, occurrence.offset
            ))

        if argument.validator is not None:
            cause = None
            try:
                accepted = argument.validator(value)
            except (ValueError, TypeError) as exception:
                accepted, cause = False, exception
            if not accepted:
                return Failure(ParseError(
                    argument.longname, value, ErrorType.ARGUMENT, ErrorCode.INVALID_VALUE, occurrence.offset,
                    cause=cause
                ))
        self._counts[argument] += 1

        key = ("argument", argument.longname)
        if key in self._slots:
            self._parameters[self._slots[key]] = ParsedArgument(argument.longname, value)
        else:
            self._slots[key] = len(self._parameters)
            self._parameters.append(ParsedArgument(argument.longname, value))
        return Success(self)

    def _input(self, occurrence):
        arguments = self._command.arguments
        if not arguments:
            return Failure(ParseError(
                occurrence.value, None, ErrorType.ARGUMENT, ErrorCode.UNKNOWN_PARAMETER, occurrence.offset
            ))
        for argument in arguments:
            if argument.max is None or self._counts[argument] < argument.max:
                return self._argument(argument, occurrence)
        return Failure(ParseError(
            arguments[-1].longname, occurrence.value, ErrorType.ARGUMENT, ErrorCode.OUT_OF_BOUND, occurrence.offset
        ))


def _by_longname(declarations, name):
    for declaration in declarations:
        if declaration.longname == name:
            return declaration
    return None


def _by_shortname(declarations, codepoint):
    for declaration in declarations:
        if declaration.shortname == codepoint:
            return declaration
    return None


def _global(configuration, position):
    if (command := configuration.global_command) is None:
        return Failure(ParseError("", None, ErrorType.COMMAND, ErrorCode.NO_GLOBAL_COMMAND, position))
    return Success((command, position))


def resolve(configuration, tokens):
    """
    select the command governing tokens[1:].

    returns Success((command, offset)) where offset is the index of the first
    token that belongs to the command's stream: 2 when tokens[1] named the
    command, 1 when the global command was used (tokens[1], if any, stays in
    the stream).
    """
    if len(tokens) < 2 or tokens[1].startswith("-"):
        return _global(configuration, 1)

    candidate = tokens[1]
    data = encode(candidate)
    if not (leading := decode_leading(data)):
        return Failure(ParseError(candidate, None, ErrorType.NONE, ErrorCode.BAD_STRING, 1))

    codepoint, length = leading.value
    if length == len(data):
        # a lone codepoint is a shortname first, but may still be a whole longname
        command = _by_shortname(configuration.commands, codepoint)
        if command is None:
            command = _by_longname(configuration.commands, candidate)
    else:
        command = _by_longname(configuration.commands, candidate)

    if command is None:
        return _global(configuration, 1)
    return Success((command, 2))


def parse_long(token, command):
    """
    '--name' (flag) or '--name=value' (argument), split at the first '='.
    """
    name, equal, value = token[2:].partition("=")
    value = value if equal else None

    if (flag := _by_longname(command.flags, name)) is not None:
        if value is not None:
            return Failure(ParseError(name, value, ErrorType.FLAG, ErrorCode.FLAG_WITH_VALUE))
        return Success(Delta.of(flag))

    if (argument := _by_longname(command.arguments, name)) is not None:
        if value is None:
            return Failure(ParseError(name, None, ErrorType.ARGUMENT, ErrorCode.MISSING_VALUE))
        return Success(Delta.of(argument, value))

    return Failure(ParseError(name, value, ErrorType.ARGUMENT, ErrorCode.UNKNOWN_PARAMETER))


def parse_short(token, command, cursor):
    """
    '-x' (flag), '-x value' (argument, value taken through the cursor) or
    '-xyz' (cluster of flags, one occurrence per codepoint).
    """
    name = token[1:]
    data = encode(name)
    if not (leading := decode_leading(data)):
        return Failure(ParseError(name, None, ErrorType.FLAG, ErrorCode.BAD_STRING))
    codepoint, length = leading.value

    if len(data) > length:
        occurrences = []
        for outcome in codepoints(data):
            if not outcome:
                return Failure(ParseError(name, None, ErrorType.FLAG, ErrorCode.BAD_STRING))
            codepoint, _, _ = outcome.value
            if (flag := _by_shortname(command.flags, codepoint)) is None:
                return Failure(ParseError(name, None, ErrorType.FLAG, ErrorCode.UNKNOWN_PARAMETER))
            occurrences.append(Occurrence(flag))
        return Success(Delta(occurrences))

    if (flag := _by_shortname(command.flags, codepoint)) is not None:
        return Success(Delta.of(flag))

    if (argument := _by_shortname(command.arguments, codepoint)) is not None:
        if (value := cursor.take()) is Unset:
            return Failure(ParseError(name, None, ErrorType.ARGUMENT, ErrorCode.MISSING_VALUE))
        return Success(Delta.of(argument, value, 1))

    return Failure(ParseError(name, None, ErrorType.ARGUMENT, ErrorCode.UNKNOWN_PARAMETER))


def validate_required(command, parsed):
    """
    fail with RequiredArgument naming the first (in declaration order)
    required argument that never occurred.
    """
    required = {argument.longname for argument in command.arguments if argument.required}
    for parameter in parsed.parameters:
        match parameter:
            case ParsedArgument(name=name):
                required.discard(name)
            case ParsedFlag():
                pass
            case _:
                raise TypeError(f"unexpected parameter {parameter!r}")

    if required:
        missing = next(argument.longname for argument in command.arguments if argument.longname in required)
        return Failure(ParseError(missing, None, ErrorType.ARGUMENT, ErrorCode.REQUIRED_ARGUMENT))
    return Success(parsed)


def parse_tokens(tokens, command):
    """
    classify the tokens of one command stream (positions relative to tokens[0]).
    """
    tally = Tally(command)
    cursor = Cursor(tokens)
    while cursor:
        start = cursor.index
        token = cursor.current
        if token.startswith("---"):
            return Failure(ParseError(token, None, ErrorType.NONE, ErrorCode.SYNTAX_ERROR, start))
        elif token.startswith("--"):
            outcome = parse_long(token, command)
        elif token.startswith("-"):
            outcome = parse_short(token, command, cursor)
        else:
            outcome = Success(Delta.input(token))

        if not (outcome := outcome.bind(tally.commit)):
            return outcome.map_error(lambda error, /: error.shifted(start))
        cursor.advance()

    return validate_required(command, tally.parsed())


def parse(configuration, tokens):
    """
    parse a full argv (tokens[0] is the program) against a configuration.

    Raises
    - TypeError: when tokens is not a sequence of strings.
    - ValueError: when tokens is empty (the program token is mandatory).
    """
    if isinstance(tokens, str | bytes):
        raise TypeError("parse() argument must be a sequence of strings, not a single string")
    tokens = tuple(tokens)
    if not tokens:
        raise ValueError("parse() argument must contain at least the program token")
    for token in tokens:
        if not isinstance(token, str):
            raise TypeError("parse() argument must only contain strings")

    if not (resolved := resolve(configuration, tokens)):
        return resolved
    command, offset = resolved.value

    return parse_tokens(tokens[offset:], command).map_error(
        lambda error, /: error.shifted(offset)
    ).map(
        lambda parsed, /: ParseResult(tokens[0], parsed)
    )


__all__ = (
    "Cursor",
    "Occurrence",
    "Delta",
    "Tally",
    "resolve",
    "parse_long",
    "parse_short",
    "validate_required",
    "parse_tokens",
    "parse",
)
