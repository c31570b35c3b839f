"""Hits_Harness package initialization."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .config import RunConfig
    from .validation.orchestrator import run_validation

__all__ = ["RunConfig", "run_validation"]


def __getattr__(name: str) -> Any:  # pragma: no cover - attribute access
    """Lazily expose the run entry points."""

    if name == "run_validation":
        from .validation.orchestrator import run_validation as _run_validation

        return _run_validation
    if name == "RunConfig":
        from .config import RunConfig as _RunConfig

        return _RunConfig
    raise AttributeError(name)
