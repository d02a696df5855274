"""
Parse results.

- ParsedArgument(name, value): the latest value given to an argument.
- ParsedFlag(name, occurrence): how many times a flag was given.
  Both are the two cases of the Parameter variant (see `kind`); every consumer
  matches them exhaustively.
- ParsedCommand: the resolved command name plus its parameters, in order of
  first occurrence.
- ParseResult: the program token, the parsed command and a top-level
  parameter tuple that is always empty (no flags are parsed ahead of the
  command name).
"""
from .utils import Unset, coalesce


class Parameter:
    """
    Base of the two parameter variants (not instantiable by itself).
    """
    __slots__ = ("name",)
    kind = Unset

    def __new__(cls, *args, **kwargs):
        if cls is Parameter:
            raise TypeError("type 'Parameter' cannot be instantiated directly")
        return super().__new__(cls)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return tuple(self.__rich_repr__()) == tuple(other.__rich_repr__())

    def __hash__(self):
        return hash((type(self), *self.__rich_repr__()))

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, ", ".join("%s=%r" % pair for pair in self.__rich_repr__()))


class ParsedArgument(Parameter):
    __slots__ = ("value",)
    kind = "argument"

    def __init__(self, name, value):
        self.name = name
        self.value = value

    def __rich_repr__(self):
        yield "name", self.name
        yield "value", self.value


class ParsedFlag(Parameter):
    __slots__ = ("occurrence",)
    kind = "flag"

    def __init__(self, name, occurrence=1):
        self.name = name
        self.occurrence = occurrence

    def __rich_repr__(self):
        yield "name", self.name
        yield "occurrence", self.occurrence


def _serialize(parameter):
    match parameter:
        case ParsedArgument(name=name, value=value):
            return {"kind": "argument", "name": name, "value": value}
        case ParsedFlag(name=name, occurrence=occurrence):
            return {"kind": "flag", "name": name, "occurrence": occurrence}
    raise TypeError(f"unexpected parameter {parameter!r}")


class ParsedCommand:
    """
    the parameters collected for the resolved command.

    parameters keep the order in which each name first occurred; a repeated
    argument replaces its value in place and a repeated flag bumps its count.
    """
    __slots__ = ("name", "parameters", "_command")

    def __init__(self, name, parameters=(), *, command=Unset):
        self.name = name
        self.parameters = tuple(parameters)
        self._command = command

    @property
    def command(self):
        """
        the Command declaration this result was parsed against (None if unknown).
        """
        return coalesce(self._command)

    def value(self, name, /):
        """
        latest value of argument 'name', or its declared default when it never occurred.

        Raises
        - KeyError: when 'name' is neither parsed nor declared as an argument.
        """
        for parameter in self.parameters:
            match parameter:
                case ParsedArgument() if parameter.name == name:
                    return parameter.value
        for argument in getattr(self.command, "arguments", ()):
            if argument.longname == name:
                return argument.default
        raise KeyError(name)

    def count(self, name, /):
        """
        occurrence count of flag 'name' (0 when it never occurred).
        """
        for parameter in self.parameters:
            match parameter:
                case ParsedFlag() if parameter.name == name:
                    return parameter.occurrence
        return 0

    def __contains__(self, name):
        return any(parameter.name == name for parameter in self.parameters)

    def as_dict(self):
        return {"name": self.name, "parameters": [_serialize(parameter) for parameter in self.parameters]}

    def __eq__(self, other):
        if not isinstance(other, ParsedCommand):
            return NotImplemented
        return (self.name, self.parameters) == (other.name, other.parameters)

    def __hash__(self):
        return hash((self.name, self.parameters))

    def __rich_repr__(self):
        yield "name", self.name
        yield "parameters", self.parameters

    def __repr__(self):
        return "parsed-command(name=%r, parameters=%r)" % (self.name, self.parameters)


class ParseResult:
    __slots__ = ("program", "command", "parameters")

    def __init__(self, program, command, parameters=()):
        self.program = program
        self.command = command
        self.parameters = tuple(parameters)

    def as_dict(self):
        return {
            "program": self.program,
            "command": self.command.as_dict(),
            "parameters": [_serialize(parameter) for parameter in self.parameters],
        }

    def __eq__(self, other):
        if not isinstance(other, ParseResult):
            return NotImplemented
        return (self.program, self.command, self.parameters) == (other.program, other.command, other.parameters)

    def __hash__(self):
        return hash((self.program, self.command, self.parameters))

    def __rich_repr__(self):
        yield "program", self.program
        yield "command", self.command
        yield "parameters", self.parameters

    def __repr__(self):
        return "parse-result(program=%r, command=%r, parameters=%r)" % (self.program, self.command, self.parameters)


__all__ = (
    "Parameter",
    "ParsedArgument",
    "ParsedFlag",
    "ParsedCommand",
    "ParseResult",
)
