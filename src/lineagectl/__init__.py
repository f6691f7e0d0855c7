"""lineagectl — in-memory genealogy DAG with transactional mutation."""

from __future__ import annotations

from lineagectl.domain.errors import (
    AlreadyExists,
    CycleDetected,
    EmptyParents,
    ErrorKind,
    GenealogyError,
    NotFound,
    RemoveStemForbidden,
)
from lineagectl.domain.types import Virus
from lineagectl.genealogy import Genealogy

__version__ = "0.1.0"

__all__ = [
    "AlreadyExists",
    "CycleDetected",
    "EmptyParents",
    "ErrorKind",
    "Genealogy",
    "GenealogyError",
    "NotFound",
    "RemoveStemForbidden",
    "Virus",
    "__version__",
]
