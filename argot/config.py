"""
Argot configuration layer: build once, parse many times.

What this module provides
- Parser: a small mutable builder that accumulates commands and the global
  command reference, then freezes them with build().
- Configuration: the immutable result of build(). It owns the parse entry
  points and may be shared freely (including across threads): parsing never
  mutates it.

Global command
- The command used when no command name is given (or the first token is not a
  known command name). It is either an inline Command or the longname of one
  of the configured commands; the latter is looked up lazily at parse time,
  so a dangling name behaves exactly like "no global command".

Runtime options (carried by the Configuration, used when surfacing faults)
- program: label used in rendered faults (defaults to __main__.__prog__, then "argot").
- shell: print faults on stderr and exit(1) instead of raising.
- fancy: render faults inside a rich Panel.
- colorful: colorize rendered faults.

Quick start
    from argot import Parser, Command, Argument, Flag

    configuration = (
        Parser("tool")
        .command("build", "b", flags=[Flag("verbose", "v")], arguments=[Argument("out", "o", required=True)])
        .set_global_command("build")
        .build()
    )
    result = configuration.invoke("build -v --out=bin")
"""
import os.path
import shlex
import sys
from collections.abc import Iterable

from .faults import CollidingNameWarning, ErrorCode, ParseFailure, trigger
from .parser import parse
from .specs import Command, Spec
from .utils import *


def _sanitize_fallback(cls, fallback, /):
    match fallback:
        case UnsetType() | Command():
            return fallback
        case str() if fallback:
            return fallback
        case str():
            raise ValueError(f"{cls.__typename__} global command name cannot be empty")
    raise TypeError(f"{cls.__typename__} global command must be a command or a command name")


class Configuration(Spec, final=True):
    """
    Immutable parser configuration (see Parser.build()).
    """

    __introspectable__ = (
        "commands",
        "fallback",
        "program",
        "shell",
        "fancy",
        "colorful",
    )

    def __new__(
            cls,
            commands=(),
            fallback=Unset,
            /,
            *,
            program=Unset,
            shell=False,
            fancy=False,
            colorful=True
    ):
        if isinstance(commands, str) or not isinstance(commands, Iterable):
            raise TypeError(f"{cls.__typename__} commands must be an iterable of commands")
        commands = tuple(commands)
        seen = set()
        for command in commands:
            if not isinstance(command, Command):
                raise TypeError(f"{cls.__typename__} commands must only contain commands")
            if command.longname in seen:
                trigger(CollidingNameWarning(
                    "command name %r is configured more than once" % command.longname,
                    title="colliding name",
                    code=ErrorCode.COLLIDING_NAME,
                    hint="only the first command named %r will ever match" % command.longname,
                ), stacklevel=5)
            seen.add(command.longname)

        if not isinstance(program, str | Unset):
            raise TypeError(f"{cls.__typename__} 'program' must be a string")

        metadata = {
            "commands": commands,
            "fallback": coalesce(_sanitize_fallback(cls, fallback)),
            "program": coalesce(program),
            "shell": bool(shell),
            "fancy": bool(fancy),
            "colorful": bool(colorful),
        }
        return super().__new__(cls)._seal(metadata)

    @property
    def global_command(self):
        """
        the global Command, resolved now (None when there is none).
        """
        match fallback := self.fallback:
            case Command():
                return fallback
            case str():
                for command in self.commands:
                    if command.longname == fallback:
                        return command
        return None

    def parse(self, tokens, /):
        """
        parse a full argv (tokens[0] is the program name).

        returns Success(ParseResult) or Failure(ParseError); never raises for
        bad user input.
        """
        return parse(self, tokens)

    def invoke(self, prompt=Unset, /):
        """
        parse a prompt and return its ParseResult, surfacing failures as faults.

        Parameters
        - prompt:
          • Unset: parse sys.argv as-is.
          • str: shell-like string without the program; split with shlex.split.
          • Iterable[str]: pre-tokenized arguments without the program.

        Behavior
        - on failure, the ParseError is wrapped into a ParseFailure and triggered:
          raised in non-shell mode, printed on stderr followed by exit(1) otherwise.

        Raises
        - TypeError: when prompt is not Unset/str/Iterable[str].
        - ParseFailure: on bad input, outside shell mode.
        """
        program = self.program
        if program is None:
            program = os.path.basename(sys.argv[0]) if sys.argv else ""
        if prompt is Unset:
            tokens = list(sys.argv) or [program]
        elif isinstance(prompt, str):
            tokens = [program, *shlex.split(prompt)]
        elif isinstance(prompt, Iterable):
            tokens = [program, *prompt]
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("invoke() argument must be a string or an iterable of strings")
        else:
            raise TypeError("invoke() argument must be a string or an iterable of strings")

        if not (outcome := self.parse(tokens)):
            options = {"shell": self.shell, "fancy": self.fancy, "colorful": self.colorful}
            if self.program is not None:
                # otherwise the renderer falls back to __main__.__prog__
                options["program"] = self.program
            trigger(ParseFailure(outcome.error), **options)
        return outcome.value


class Parser:
    """
    Builder for a Configuration.

    Every method returns the builder itself so that calls chain; nothing is
    validated beyond the individual specs until build().
    """

    def __init__(self, program=Unset, /, *, shell=False, fancy=False, colorful=True):
        self._program = program
        self._options = {"shell": shell, "fancy": fancy, "colorful": colorful}
        self._commands = []
        self._fallback = Unset

    commands = view("commands")

    def add_command(self, command, /):
        if not isinstance(command, Command):
            raise TypeError("add_command() argument must be a command")
        self._commands.append(command)
        return self

    def command(self, longname, shortname=Unset, /, **options):
        """
        build a Command from the given metadata and add it (see Command).
        """
        return self.add_command(Command(longname, shortname, **options))

    def set_global_command(self, command, /):
        """
        use 'command' (a Command, or the longname of a configured one) when no
        command name is given.
        """
        self._fallback = _sanitize_fallback(Configuration, command)
        return self

    def build(self):
        return Configuration(self._commands, self._fallback, program=self._program, **self._options)


__all__ = (
    "Configuration",
    "Parser",
)
