"""Genealogy scripts — TOML files describing a sequence of operations.

Script format::

    stem = "S"

    [[ops]]
    op = "create"
    id = "A"
    parent = "S"

    [[ops]]
    op = "create"
    id = "C"
    parents = ["A", "B"]

    [[ops]]
    op = "connect"
    child = "C"
    parent = "S"

    [[ops]]
    op = "remove"
    id = "A"

All identifiers in one script must share a type (all strings or all
integers) so that they can be ordered against each other.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, Field, ValidationError, model_validator

from lineagectl.services.base import BaseService
from lineagectl.services.genealogy import GenealogyService
from lineagectl.services.result import ServiceResult
from lineagectl.services.telemetry import traced

NodeId = str | int


class ScriptError(ValueError):
    """A script file could not be read or validated."""


class CreateOp(BaseModel):
    """``create``: one of ``parent`` or ``parents`` is required."""

    model_config = {"frozen": True}

    op: Literal["create"]
    id: NodeId
    parent: NodeId | None = None
    parents: list[NodeId] | None = None

    @model_validator(mode="after")
    def _one_parent_form(self) -> Self:
        if (self.parent is None) == (self.parents is None):
            msg = "create needs exactly one of 'parent' or 'parents'"
            raise ValueError(msg)
        return self

    @property
    def parent_ids(self) -> list[NodeId]:
        return [self.parent] if self.parent is not None else list(self.parents or [])

    def ids(self) -> list[NodeId]:
        return [self.id, *self.parent_ids]


class ConnectOp(BaseModel):
    model_config = {"frozen": True}

    op: Literal["connect"]
    child: NodeId
    parent: NodeId

    def ids(self) -> list[NodeId]:
        return [self.child, self.parent]


class RemoveOp(BaseModel):
    model_config = {"frozen": True}

    op: Literal["remove"]
    id: NodeId

    def ids(self) -> list[NodeId]:
        return [self.id]


Operation = Annotated[CreateOp | ConnectOp | RemoveOp, Field(discriminator="op")]


class Script(BaseModel):
    """A stem plus the operations to replay on top of it."""

    model_config = {"frozen": True}

    stem: NodeId
    ops: list[Operation] = Field(default_factory=list)

    @model_validator(mode="after")
    def _uniform_id_type(self) -> Self:
        kinds = {type(self.stem)}
        for operation in self.ops:
            kinds.update(type(node_id) for node_id in operation.ids())
        if len(kinds) > 1:
            msg = "identifiers must be all strings or all integers"
            raise ValueError(msg)
        return self


def parse_script(data: dict[str, Any], *, default_stem: NodeId | None = None) -> Script:
    """Validate a decoded script mapping.

    *default_stem* fills in a missing ``stem`` key.

    Raises:
        ScriptError: the mapping is not a valid script.
    """
    if default_stem is not None and "stem" not in data:
        data = {**data, "stem": default_stem}
    try:
        return Script.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid script: {exc}"
        raise ScriptError(msg) from exc


def load_script(path: Path, *, default_stem: NodeId | None = None) -> Script:
    """Read and validate a TOML script.

    Raises:
        ScriptError: the file is missing, not TOML, or not a valid script.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read script {path}: {exc}"
        raise ScriptError(msg) from exc
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ScriptError(msg) from exc
    return parse_script(data, default_stem=default_stem)


class ScriptService(BaseService):
    """Replays a :class:`Script` against the wrapped genealogy."""

    @traced
    def replay(self, script: Script, *, keep_going: bool = False) -> ServiceResult:
        """Apply every operation in order.

        Stops at the first failed step unless *keep_going* is set. The
        result fails when any step failed; its error is the first failure.
        """
        genealogy_service = GenealogyService(self._genealogy, self._plugins)
        steps: list[dict[str, Any]] = []
        warnings: list[str] = []
        first_failure: ServiceResult | None = None

        for index, operation in enumerate(script.ops):
            result = self._apply(genealogy_service, operation)
            step: dict[str, Any] = {"index": index, "op": operation.op, "ok": result.ok}
            if result.ok:
                step["data"] = result.data
            elif result.error is not None:
                step["code"] = result.error.code
                step["message"] = result.error.message
            steps.append(step)
            warnings.extend(f"step {index}: {warning}" for warning in result.warnings)

            if not result.ok and first_failure is None:
                first_failure = result
                if not keep_going:
                    break

        data = {
            "stem": self._genealogy.stem_id,
            "applied": sum(1 for step in steps if step["ok"]),
            "failed": sum(1 for step in steps if not step["ok"]),
            "total": len(script.ops),
            "node_count": len(self._genealogy),
            "steps": steps,
        }
        if first_failure is not None:
            return ServiceResult(
                ok=False,
                op="replay",
                data=data,
                warnings=warnings,
                error=first_failure.error,
            )
        return ServiceResult(ok=True, op="replay", data=data, warnings=warnings)

    @staticmethod
    def _apply(
        service: GenealogyService,
        operation: CreateOp | ConnectOp | RemoveOp,
    ) -> ServiceResult:
        if isinstance(operation, CreateOp):
            return service.create(operation.id, operation.parent_ids)
        if isinstance(operation, ConnectOp):
            return service.connect(operation.child, operation.parent)
        return service.remove(operation.id)
