"""
Success-or-error carrier used by the parsing pipeline.

Every stage of the engine returns an Outcome instead of raising: a Success
wraps the produced value, a Failure wraps the error value. Stages compose with
bind()/map(); a Failure short-circuits every later stage unchanged, so the
first error encountered is the one handed back to the caller.

Quick example
    >>> Success(2).map(lambda x: x * 3).unwrap()
    6
    >>> Failure("boom").map(lambda x: x * 3).error
    'boom'

Notes
- Outcomes are truthy on success and falsy on failure, which keeps the
  early-return style short:
      if not (outcome := stage(...)):
          return outcome
- unwrap() on a Failure raises the error when it is an exception, otherwise a
  ValueError naming it; it exists for callers at the edge of the pipeline.
"""
from typing import final


class Outcome:
    """
    Abstract base of Success and Failure (not instantiable by itself).
    """
    __slots__ = ()

    def __new__(cls, *args, **kwargs):
        if cls is Outcome:
            raise TypeError("type 'Outcome' cannot be instantiated directly")
        return super().__new__(cls)


@final
class Success(Outcome):
    __slots__ = ("value",)

    def __init__(self, value=None, /):
        self.value = value

    def bind(self, function, /):
        return function(self.value)

    def map(self, function, /):
        return Success(function(self.value))

    def map_error(self, function, /):
        return self

    def unwrap(self):
        return self.value

    def __bool__(self):
        return True

    def __eq__(self, other):
        if not isinstance(other, Success):
            return NotImplemented
        return self.value == other.value

    def __hash__(self):
        return hash((Success, self.value))

    def __repr__(self):
        return f"Success({self.value!r})"

    def __rich_repr__(self):
        yield self.value


@final
class Failure(Outcome):
    __slots__ = ("error",)

    def __init__(self, error, /):
        self.error = error

    def bind(self, function, /):
        return self

    def map(self, function, /):
        return self

    def map_error(self, function, /):
        return Failure(function(self.error))

    def unwrap(self):
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"unwrap() called on a failure: {self.error}")

    def __bool__(self):
        return False

    def __eq__(self, other):
        if not isinstance(other, Failure):
            return NotImplemented
        return self.error == other.error

    def __hash__(self):
        return hash((Failure, self.error))

    def __repr__(self):
        return f"Failure({self.error!r})"

    def __rich_repr__(self):
        yield self.error


__all__ = (
    "Outcome",
    "Success",
    "Failure",
)
