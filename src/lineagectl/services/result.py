"""ServiceResult and ServiceError — the tagged Ok/Err boundary type.

INVARIANT: All service-layer methods return ServiceResult.
The genealogy itself raises; services translate every
:class:`~lineagectl.domain.errors.GenealogyError` into an error result whose
``code`` is the error's :class:`~lineagectl.domain.errors.ErrorKind`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from lineagectl.domain.errors import GenealogyError

_PLAIN = (str, int, float, bool, type(None))


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: GenealogyError) -> ServiceError:
        """Build an error payload from a genealogy failure."""
        detail = {
            key: value if isinstance(value, _PLAIN) else repr(value)
            for key, value in exc.detail.items()
        }
        return cls(code=exc.kind.value, message=exc.message, detail=detail)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"create"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: GenealogyError, **kwargs: Any) -> ServiceResult:
        """Error result carrying *exc*'s kind as the error code."""
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc), **kwargs)
