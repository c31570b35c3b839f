"""Sweep helpers and runners."""

from .runner import SweepConfig, run

__all__ = ["SweepConfig", "run"]
