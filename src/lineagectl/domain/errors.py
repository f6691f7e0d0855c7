"""Error taxonomy for genealogy operations.

Every failure the genealogy itself detects is a :class:`GenealogyError`
tagged with a closed :class:`ErrorKind`. The service layer turns the kind
into ``ServiceError.code``; anything that is not a ``GenealogyError``
(a comparison or payload factory raising) propagates untouched.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar


class ErrorKind(StrEnum):
    """Closed set of genealogy failure kinds."""

    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    REMOVE_STEM_FORBIDDEN = "REMOVE_STEM_FORBIDDEN"
    CYCLE_DETECTED = "CYCLE_DETECTED"
    EMPTY_PARENTS = "EMPTY_PARENTS"


class GenealogyError(Exception):
    """Base class for all failures raised by :class:`~lineagectl.Genealogy`."""

    kind: ClassVar[ErrorKind]
    default_message: ClassVar[str] = "Genealogy error"

    def __init__(self, message: str | None = None, **detail: Any) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class NotFound(GenealogyError, LookupError):
    """An operation referenced an identifier absent from the genealogy."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Node not found"


class AlreadyExists(GenealogyError):
    """A creation attempted to reuse an identifier already present."""

    kind = ErrorKind.ALREADY_EXISTS
    default_message = "Node already exists"


class RemoveStemForbidden(GenealogyError):
    """An attempt was made to remove the permanent stem."""

    kind = ErrorKind.REMOVE_STEM_FORBIDDEN
    default_message = "The stem cannot be removed"


class CycleDetected(GenealogyError):
    """A link would make a node its own ancestor."""

    kind = ErrorKind.CYCLE_DETECTED
    default_message = "Link would create a cycle"


class EmptyParents(GenealogyError, ValueError):
    """A multi-parent creation was given no parents."""

    kind = ErrorKind.EMPTY_PARENTS
    default_message = "At least one parent is required"
