r"""
Argot declaration specs.

Overview
- Argument: named, value-bearing parameter (e.g., --out=bin, -o bin), also the
  target of positional inputs.
- Flag: named, presence-only parameter counted by occurrence (e.g., -v, -vvv, --verbose).
- Command: a longname/shortname pair owning ordered Argument and Flag declarations.

Specs are immutable once built: every field is exposed through a read-only
property and instances refuse attribute assignment after construction. This is
what lets one configuration be shared by concurrent parse calls.

Metadata (sanitized on construction)
- Shared (all specs)
  • longname: str, non-empty, no leading '-', no '=' and no whitespace.
  • shortname: Unset | one-codepoint str | int scalar value, stored as the int
    codepoint; surrogates, '-', '=' and whitespace are rejected.
  • descr: Unset | str | Text, non-empty when provided.
- Argument and Flag
  • min: int >= 0 (default 0).
  • max: Unset | int >= 1 and >= min (Unset means unbounded, exposed as None).
- Argument only
  • metavar: Unset | str, non-empty when provided.
  • validator: Unset | Callable[[str], bool] over the raw string value.
  • default: any value, returned by ParsedCommand.value() when absent.
  • required: bool, the argument must occur at least once whatever its min.

Name collisions
- Longnames and shortnames are not required to be unique across a command's
  flags and arguments; lookups take the first declaration that matches (flags
  before arguments). A CollidingNameWarning is emitted so the caller knows.

Quick example:
    >>> build = Command(
    ...     "build", "b",
    ...     flags=[Flag("verbose", "v")],
    ...     arguments=[Argument("out", "o", required=True)],
    ... )
"""
import functools
import operator
import re
from collections.abc import Iterable

from rich.text import Text

from .faults import CollidingNameWarning, ErrorCode, trigger
from .utils import *


class SpecType(type):
    """
    Metaclass that turns spec classes into sealed, introspectable value types.

    Responsibilities
    - Expose selected fields as read-only properties using view() for all names
      listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.
    - Seal classes declared with final=True against subclassing.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: view(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - flag(longname='verbose', shortname=118, ...)
            """
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield a sequence of (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("final", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                """
                Disallow subclassing of concrete spec classes.
                """
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


class Spec(metaclass=SpecType):
    """
    Common base of the concrete specs: write-once instances.
    """

    def __setattr__(self, name, value, /):
        if vars(self).get("_sealed", False):
            raise AttributeError(f"{type(self).__typename__} is read-only")
        object.__setattr__(self, name, value)

    def __delattr__(self, name, /):
        raise AttributeError(f"{type(self).__typename__} is read-only")

    def _seal(self, metadata, /):
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._sealed = True
        return self


def _sanitize_identity(cls, metadata, /):
    """
    Internal: validate longname/shortname/descr, shared by every spec.

    Raises
    - TypeError: when a field has the wrong type.
    - ValueError: when a field has the right type but an unusable value.

    Notes
    - Mutates the metadata dict in place; shortname is normalized to an int codepoint
      (or None) and descr to None when Unset.
    """
    if not isinstance(longname := metadata["longname"], str):
        raise TypeError(f"{cls.__typename__} 'longname' must be a string")
    elif not re.fullmatch(r"[^\s=\-][^\s=]*", longname):
        raise ValueError(f"{cls.__typename__} 'longname' must be non-empty, without '=' or spaces, and not start with '-'")

    match shortname := metadata["shortname"]:
        case UnsetType():
            metadata["shortname"] = None
        case str() if len(shortname) == 1:
            metadata["shortname"] = ord(shortname)
        case str():
            raise ValueError(f"{cls.__typename__} 'shortname' must be a single character")
        case bool():
            raise TypeError(f"{cls.__typename__} 'shortname' must be a character or a codepoint")
        case int() if 0 <= shortname <= 0x10FFFF:
            metadata["shortname"] = shortname
        case int():
            raise ValueError(f"{cls.__typename__} 'shortname' must be a valid unicode codepoint")
        case _:
            raise TypeError(f"{cls.__typename__} 'shortname' must be a character or a codepoint")

    if (codepoint := metadata["shortname"]) is not None:
        if 0xD800 <= codepoint <= 0xDFFF:
            raise ValueError(f"{cls.__typename__} 'shortname' cannot be a surrogate")
        if chr(codepoint) in "-=" or chr(codepoint).isspace():
            raise ValueError(f"{cls.__typename__} 'shortname' cannot be '-', '=' or a space")

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_bounds(cls, metadata, /):
    """
    Internal: validate occurrence bounds of arguments and flags.

    - min: int >= 0.
    - max: Unset (unbounded, stored as None) or int >= 1 and >= min.
    """
    if not isinstance(min := metadata["min"], int) or isinstance(min, bool):
        raise TypeError(f"{cls.__typename__} 'min' must be an integer")
    elif min < 0:
        raise ValueError(f"{cls.__typename__} 'min' cannot be negative")

    if isinstance(max := metadata["max"], bool) or not isinstance(max, int | Unset):
        raise TypeError(f"{cls.__typename__} 'max' must be an integer")
    elif isinstance(max, int) and max < 1:
        raise ValueError(f"{cls.__typename__} 'max' must be a positive integer")
    elif isinstance(max, int) and max < min:
        raise ValueError(f"{cls.__typename__} 'max' cannot be lower than 'min'")
    metadata["max"] = coalesce(max)


def _sanitize_valued_metadata(cls, metadata, /):
    """
    Internal: validate the value-bearing fields of arguments (metavar, validator).

    default is deliberately not validated; it may be any value and is only handed
    back by ParsedCommand.value() when the argument never occurred.
    """
    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar)

    if not callable(validator := metadata["validator"]) and validator is not Unset:
        raise TypeError(f"{cls.__typename__} 'validator' must be callable")
    metadata["validator"] = coalesce(validator)
    metadata["default"] = coalesce(metadata["default"])


def _sanitize_declarations(cls, metadata, name, kind, /):
    if isinstance(declarations := metadata[name], str) or not isinstance(declarations, Iterable):
        raise TypeError(f"{cls.__typename__} '{name}' must be an iterable of {kind.__typename__}s")
    declarations = tuple(declarations)
    for declaration in declarations:
        if not isinstance(declaration, kind):
            raise TypeError(f"{cls.__typename__} '{name}' must only contain {kind.__typename__}s")
    metadata[name] = declarations


class Argument(Spec, final=True):
    """
    Named, value-bearing parameter declaration.

    An argument takes exactly one value per occurrence: '--name=value' in long
    form, '-n value' in short form, or a bare positional input routed to the
    first argument that still accepts occurrences. Only the latest value is
    kept in the parse result.
    """

    __introspectable__ = (
        "longname",
        "shortname",
        "min",
        "max",
        "metavar",
        "validator",
        "default",
        "required",
        "descr",
    )

    def __new__(
            cls,
            longname,
            shortname=Unset,
            /,
            *,
            min=0,
            max=Unset,
            metavar=Unset,
            validator=Unset,
            default=Unset,
            required=False,
            descr=Unset
    ):
        metadata = {
            "longname": longname,
            "shortname": shortname,
            "min": min,
            "max": max,
            "metavar": metavar,
            "validator": validator,
            "default": default,
            "required": bool(required),
            "descr": descr,
        }
        _sanitize_identity(cls, metadata)
        _sanitize_bounds(cls, metadata)
        _sanitize_valued_metadata(cls, metadata)
        return super().__new__(cls)._seal(metadata)


class Flag(Spec, final=True):
    """
    Named, presence-only parameter declaration, counted by occurrence.

    Flags never carry a value: '--name=value' is an error, and '-abc' expands
    into one occurrence of each of the flags a, b and c.
    """

    __introspectable__ = (
        "longname",
        "shortname",
        "min",
        "max",
        "descr",
    )

    def __new__(cls, longname, shortname=Unset, /, *, min=0, max=Unset, descr=Unset):
        metadata = {
            "longname": longname,
            "shortname": shortname,
            "min": min,
            "max": max,
            "descr": descr,
        }
        _sanitize_identity(cls, metadata)
        _sanitize_bounds(cls, metadata)
        return super().__new__(cls)._seal(metadata)


class Command(Spec, final=True):
    """
    A command grammar: which arguments and flags may follow the command name.

    Identity is the longname; the optional shortname is a single codepoint that
    selects the command when it is given alone (e.g., 'prog b' for 'build').
    """

    __introspectable__ = (
        "longname",
        "shortname",
        "arguments",
        "flags",
        "descr",
    )

    __displayable__ = (
        "longname",
        "shortname",
        "arguments",
        "flags",
    )

    def __new__(cls, longname, shortname=Unset, /, *, arguments=(), flags=(), descr=Unset):
        metadata = {
            "longname": longname,
            "shortname": shortname,
            "arguments": arguments,
            "flags": flags,
            "descr": descr,
        }
        _sanitize_identity(cls, metadata)
        _sanitize_declarations(cls, metadata, "arguments", Argument)
        _sanitize_declarations(cls, metadata, "flags", Flag)

        declarations = metadata["flags"] + metadata["arguments"]
        for field in ("longname", "shortname"):
            seen = set()
            for declaration in declarations:
                if (name := getattr(declaration, field)) is None:
                    continue
                if name in seen:
                    shown = name if field == "longname" else chr(name)
                    trigger(CollidingNameWarning(
                        "command %r declares %s %r more than once" % (longname, field, shown),
                        title="colliding name",
                        code=ErrorCode.COLLIDING_NAME,
                        hint="only the first declaration named %r will ever match" % shown,
                    ), stacklevel=4)
                seen.add(name)

        return super().__new__(cls)._seal(metadata)


__all__ = (
    "Argument",
    "Flag",
    "Command",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del SpecType
