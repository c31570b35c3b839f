# config.py

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Tuple

import numpy as np


PRECISIONS = {"float32": np.float32, "float64": np.float64}
PARTITION_METHODS = ("contiguous", "random", "biased_random")


class Config:
    """Global defaults for validation runs, optionally loaded from JSON.

    Attributes
    ----------
    max_iter:
        Number of power-iteration rounds run by both the reference and the
        engine under test.
    error_threshold:
        Relative error above which a score is reported as divergent.
    quick:
        When ``True`` the reference computation and validation are skipped.
    quiet:
        Suppress narrative output. The statistics record is still produced.
    verbose:
        Print a window of values around the first divergence.
    src:
        Source vertex handed to the engine ``reset`` call. HITS starts every
        vertex at ``1.0`` so the value only matters to engines that use it.
    delta:
        Opaque convergence knob passed through to the engine ``reset`` call.
    device:
        Ids of the devices the engine should spread work across.
    partition_method:
        Vertex partitioning used by multi-device engines: ``"contiguous"``,
        ``"random"`` or ``"biased_random"``.
    num_runs:
        Number of times the engine is reset and run; compute time is averaged.
    precision:
        Floating point type of the score vectors, ``"float32"`` or
        ``"float64"``.
    hub_only:
        Compare only hub scores, skipping the authority comparison.
    log_events:
        Append JSON-lines event records under :attr:`output_dir`.
    """

    base_dir = os.path.abspath(os.path.dirname(__file__))
    config_file = os.path.join(base_dir, "input", "config.json")
    output_dir = os.path.join(base_dir, "output")
    log_file: str | None = None
    jsonfile: str | None = None
    jsondir: str | None = None

    @staticmethod
    def output_path(*parts: str) -> str:
        """Return absolute path under the current output directory."""
        return os.path.join(Config.output_dir, *parts)

    max_iter = 50
    error_threshold = 0.05
    quick = False
    quiet = False
    verbose = False
    src = 0
    delta = 0.0
    device = [0]
    partition_method = "contiguous"
    partition_seed: int | None = None
    num_runs = 1
    precision = "float64"
    hub_only = False
    top_k = 10
    log_events = False

    @classmethod
    def load_from_file(cls, path: str) -> None:
        """Load configuration values from a JSON file.

        Only keys that already exist as attributes on ``Config`` are
        assigned. Relative ``output_dir``, ``log_file``, ``jsonfile`` and
        ``jsondir`` values are resolved against the directory containing
        ``path``.

        Parameters
        ----------
        path:
            Path to the JSON configuration file.
        """
        import json

        if not os.path.exists(path):
            raise FileNotFoundError(path)
        with open(path) as f:
            data = json.load(f)
        cls.config_file = os.path.abspath(path)
        base_dir = os.path.dirname(cls.config_file)

        for key, value in data.items():
            if not hasattr(cls, key) or key.startswith("_"):
                continue
            if (
                key in {"output_dir", "log_file", "jsonfile", "jsondir"}
                and isinstance(value, str)
                and not os.path.isabs(value)
            ):
                value = os.path.abspath(os.path.join(base_dir, value))
            setattr(cls, key, value)


def load_config(path: str | None = None) -> dict:
    """Load configuration from ``path`` and return the data."""
    if path is None:
        path = Config.config_file
    Config.load_from_file(path)
    import json

    with open(path) as f:
        return json.load(f)


@dataclass(frozen=True)
class RunConfig:
    """Immutable settings for a single validation run.

    Built once when a run starts and handed to every component that needs
    it. Use :meth:`from_config` to snapshot :class:`Config` or
    :meth:`from_mapping` for plain dictionaries.
    """

    max_iter: int = 50
    error_threshold: float = 0.05
    quick: bool = False
    quiet: bool = False
    verbose: bool = False
    src: int = 0
    delta: float = 0.0
    device: Tuple[int, ...] = (0,)
    partition_method: str = "contiguous"
    partition_seed: int | None = None
    num_runs: int = 1
    precision: str = "float64"
    hub_only: bool = False
    top_k: int = 10
    log_events: bool = False
    output_dir: str = field(default_factory=lambda: Config.output_dir)

    def __post_init__(self) -> None:
        if isinstance(self.max_iter, bool) or int(self.max_iter) != self.max_iter:
            raise ValueError(f"max_iter must be an integer, got {self.max_iter!r}")
        if self.max_iter <= 0:
            raise ValueError(f"max_iter must be positive, got {self.max_iter}")
        if not self.error_threshold > 0:
            raise ValueError(
                f"error_threshold must be positive, got {self.error_threshold}"
            )
        if self.num_runs <= 0:
            raise ValueError(f"num_runs must be positive, got {self.num_runs}")
        if self.top_k < 0:
            raise ValueError(f"top_k must not be negative, got {self.top_k}")
        if self.precision not in PRECISIONS:
            raise ValueError(
                f"Unknown precision {self.precision!r}; "
                f"expected one of {', '.join(PRECISIONS)}"
            )
        if self.partition_method not in PARTITION_METHODS:
            raise ValueError(
                f"Unknown partition method {self.partition_method!r}; "
                f"expected one of {', '.join(PARTITION_METHODS)}"
            )
        if not self.device:
            raise ValueError("at least one device id is required")
        object.__setattr__(self, "device", tuple(int(d) for d in self.device))

    @property
    def dtype(self) -> type:
        """Return the numpy scalar type selected by :attr:`precision`."""
        return PRECISIONS[self.precision]

    @property
    def partition_params(self) -> Dict[str, Any]:
        """Return the parameters forwarded to the engine partitioner."""
        return {"seed": self.partition_seed}

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["device"] = list(self.device)
        return data

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RunConfig":
        """Construct a :class:`RunConfig` from ``data`` ignoring unknown keys."""

        known = cls.__dataclass_fields__.keys()
        kwargs = {k: v for k, v in data.items() if k in known}
        if "device" in kwargs and isinstance(kwargs["device"], int):
            kwargs["device"] = (kwargs["device"],)
        return cls(**kwargs)

    @classmethod
    def from_config(cls, **overrides: Any) -> "RunConfig":
        """Snapshot the current :class:`Config` attributes into a run config."""

        data = {
            name: getattr(Config, name)
            for name in cls.__dataclass_fields__
            if hasattr(Config, name)
        }
        data.update(overrides)
        return cls.from_mapping(data)
