"""
Error values and validation results shared by every zeptoblog stage.

Stages never raise for expected failures. They return a ``Result`` that
holds either a value or a non-empty list of ``BlogError`` values, so a
single run can report as many problems as possible.
"""

import enum
from dataclasses import dataclass
from pathlib import PurePath
from typing import Generic, Iterable, List, Optional, TypeVar

T = TypeVar('T')


class ErrorKind(enum.Enum):
    """Broad category of a reported error."""
    SYNTAX = 'syntax'
    SEMANTIC = 'semantic'
    DUPLICATE = 'duplicate'
    NO_SUCH_FILE = 'no_such_file'
    IO = 'io'
    TRANSFORM = 'transform'


@dataclass(frozen=True)
class LexicalPosition:
    line: int = 0
    column: int = 0
    source_file: Optional[PurePath] = None

    def show(self) -> str:
        source = str(self.source_file) if self.source_file is not None else '<unknown>'
        return f"{source}:{self.line}:{self.column}"


@dataclass(frozen=True)
class BlogError:
    message: str
    position: LexicalPosition = LexicalPosition()
    cause: Optional[BaseException] = None
    kind: ErrorKind = ErrorKind.SEMANTIC

    def show(self) -> str:
        """Format the error as ``file:line:column: message``."""
        return f"{self.position.show()}: {self.message.rstrip()}"

    def __str__(self) -> str:
        return self.show()


def of_message(message: str, kind: ErrorKind = ErrorKind.SEMANTIC) -> BlogError:
    return BlogError(message, LexicalPosition(), None, kind)


def of_message_path(message: str, path, kind: ErrorKind = ErrorKind.SEMANTIC) -> BlogError:
    return BlogError(message, LexicalPosition(0, 0, path), None, kind)


def of_exception(exc: BaseException, kind: ErrorKind = ErrorKind.IO) -> BlogError:
    return BlogError(str(exc), LexicalPosition(), exc, kind)


def of_exception_path(exc: BaseException, path, kind: ErrorKind = ErrorKind.IO) -> BlogError:
    return BlogError(str(exc), LexicalPosition(0, 0, path), exc, kind)


def of_os_error(exc: OSError, path=None) -> BlogError:
    """
    Convert an OS-level failure into an error, keeping missing files
    distinct from every other I/O problem.
    """
    if isinstance(exc, FileNotFoundError):
        return BlogError(
            f"No such file: {exc.filename or exc}",
            LexicalPosition(0, 0, path),
            exc,
            ErrorKind.NO_SUCH_FILE,
        )
    return BlogError(
        f"I/O error: {exc}",
        LexicalPosition(0, 0, path),
        exc,
        ErrorKind.IO,
    )


class Result(Generic[T]):
    """Either a successful value or a non-empty list of errors."""

    __slots__ = ('_value', '_errors')

    def __init__(self, value: Optional[T], errors: List[BlogError]):
        self._value = value
        self._errors = list(errors)

    @classmethod
    def valid(cls, value: T = None) -> 'Result[T]':
        return cls(value, [])

    @classmethod
    def invalid(cls, errors: Iterable[BlogError]) -> 'Result[T]':
        errors = list(errors)
        if not errors:
            raise ValueError("An invalid result requires at least one error")
        return cls(None, errors)

    @classmethod
    def of(cls, value: T, errors: Iterable[BlogError]) -> 'Result[T]':
        """Build a result that is valid only if ``errors`` is empty."""
        errors = list(errors)
        if errors:
            return cls(None, errors)
        return cls(value, [])

    @property
    def ok(self) -> bool:
        return not self._errors

    @property
    def errors(self) -> List[BlogError]:
        return list(self._errors)

    def get(self) -> T:
        if self._errors:
            raise ValueError(f"Result is invalid: {self._errors[0].show()}")
        return self._value

    def __repr__(self) -> str:
        if self.ok:
            return f"Result.valid({self._value!r})"
        return f"Result.invalid({self._errors!r})"
