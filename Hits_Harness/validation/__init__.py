"""Comparison, ranking and orchestration of validation runs."""

from .compare import compare_results, mismatch_mask
from .orchestrator import RunState, RunStats, run_validation
from .topk import RankingPair, format_top_k, top_k

__all__ = [
    "RankingPair",
    "RunState",
    "RunStats",
    "compare_results",
    "format_top_k",
    "mismatch_mask",
    "run_validation",
    "top_k",
]
