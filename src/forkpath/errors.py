"""Exceptions raised by forkpath.

Every error derives from both ForkpathError and the built-in exception a
caller would naturally expect (TypeError for shape problems, RuntimeError for
misuse of a closed batch), so `except TypeError` keeps working for code that
does not know about this library.
"""

from __future__ import annotations


class ForkpathError(Exception):
    """Base class for all forkpath errors."""


class PathTypeError(ForkpathError, TypeError):
    """A path step hit an absent or non-container value.

    Attributes:
        segment: Label of the step that could not be taken (e.g. "name", "0")
        found: Name of the type actually found where a container was expected
    """

    segment: str
    found: str

    def __init__(self, message: str, *, segment: str, found: str) -> None:
        super().__init__(message)
        self.segment = segment
        self.found = found

    @classmethod
    def absent(cls, segment: str, found: str) -> PathTypeError:
        return cls(
            f'Cannot read property "{segment}" of {found}',
            segment=segment,
            found=found,
        )

    @classmethod
    def not_a_container(cls, segment: str, found: str) -> PathTypeError:
        return cls(
            f'Cannot edit property "{segment}" of {found}',
            segment=segment,
            found=found,
        )


class CollectionAccessError(ForkpathError, TypeError):
    """A step of the wrong kind was used against a container.

    Attributes:
        segment: Label of the offending step
        container: Name of the container type the step was used on
    """

    segment: str
    container: str

    def __init__(self, message: str, *, segment: str, container: str) -> None:
        super().__init__(message)
        self.segment = segment
        self.container = container


class UnsupportedOperationError(ForkpathError, TypeError):
    """The operation is not legal for the value at the end of the path."""


class LockedValueError(ForkpathError, TypeError):
    """A write was attempted on a value locked by dev mode."""


class BatchClosedError(ForkpathError, RuntimeError):
    """A draft was used after its batch had been committed or abandoned."""
