"""Host details recorded next to benchmark numbers."""

from __future__ import annotations

import os
import platform
from typing import Any, Dict

import networkx as nx
import numpy as np


def _memory_gb() -> float | None:
    try:
        total = os.sysconf("SC_PHYS_PAGES") * os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError):
        return None
    return round(total / 1024**3, 2)


def machine_info() -> Dict[str, Any]:
    """Return host, interpreter and library versions for a benchmark row."""

    try:
        usable = len(os.sched_getaffinity(0))
    except AttributeError:
        usable = os.cpu_count()
    info: Dict[str, Any] = {
        "system": f"{platform.system()} {platform.release()}",
        "machine": platform.machine(),
        "python": platform.python_version(),
        "cores": os.cpu_count(),
        "usable_cores": usable,
        "libraries": {"numpy": np.__version__, "networkx": nx.__version__},
    }
    memory = _memory_gb()
    if memory is not None:
        info["memory_gb"] = memory
    return info
