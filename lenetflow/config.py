"""Validated configuration, presets and override files."""

from __future__ import annotations

import hashlib
import json
from copy import deepcopy
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, Mapping

from .core.errors import ConfigurationError
from .core.kernels import BANKS, get_kernel

SPEEDS: Dict[str, int] = {"slow": 2000, "normal": 1000, "fast": 500}
STRIDES = (1, 2, 3)
PADDINGS = (0, 1, 2)
NETWORK_INPUT_RANGE = (12, 64)
LAB_INPUT_RANGE = (3, 15)


def _choice(name: str, value, allowed) -> None:
    if isinstance(value, bool) or value not in allowed:
        options = ", ".join(str(v) for v in allowed)
        raise ConfigurationError(f"{name} must be one of {{{options}}}, got {value!r}")


def _bounded(name: str, value, bounds) -> None:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise ConfigurationError(f"{name} must be an integer in [{low}, {high}], got {value!r}")


@dataclass(frozen=True)
class NetworkConfig:
    """Options for the full-network playback."""

    input_size: int = 28
    kernel_bank: str = "lenet"
    speed: str = "normal"
    seed: int | None = None

    def __post_init__(self) -> None:
        _bounded("network.input_size", self.input_size, NETWORK_INPUT_RANGE)
        BANKS.get(self.kernel_bank)
        _choice("network.speed", self.speed, tuple(SPEEDS))
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise ConfigurationError(f"network.seed must be an integer or null, got {self.seed!r}")

    @property
    def interval_ms(self) -> int:
        return SPEEDS[self.speed]


@dataclass(frozen=True)
class LabConfig:
    """Options for the single-convolution lab."""

    input_size: int = 7
    kernel: str = "sobel_x"
    stride: int = 1
    padding: int = 0
    interval_ms: int = 400

    def __post_init__(self) -> None:
        _bounded("lab.input_size", self.input_size, LAB_INPUT_RANGE)
        kernel = get_kernel(self.kernel)
        _choice("lab.stride", self.stride, STRIDES)
        _choice("lab.padding", self.padding, PADDINGS)
        if isinstance(self.interval_ms, bool) or not isinstance(self.interval_ms, int) or self.interval_ms <= 0:
            raise ConfigurationError(f"lab.interval_ms must be a positive integer, got {self.interval_ms!r}")
        padded = self.input_size + 2 * self.padding
        if max(kernel.shape) > padded:
            raise ConfigurationError(
                f"Kernel {self.kernel!r} ({kernel.shape[0]}x{kernel.shape[1]}) does not fit "
                f"a {self.input_size}x{self.input_size} input with padding {self.padding}"
            )


@dataclass(frozen=True)
class ExplainConfig:
    """Options for the explanation lookup."""

    model: str = "gemini-2.5-flash"
    timeout_s: float = 10.0

    def __post_init__(self) -> None:
        if not isinstance(self.model, str) or not self.model:
            raise ConfigurationError("explain.model must be a non-empty string")
        if isinstance(self.timeout_s, bool) or not isinstance(self.timeout_s, (int, float)) or self.timeout_s <= 0:
            raise ConfigurationError(f"explain.timeout_s must be positive, got {self.timeout_s!r}")


@dataclass(frozen=True)
class SimulationConfig:
    network: NetworkConfig = field(default_factory=NetworkConfig)
    lab: LabConfig = field(default_factory=LabConfig)
    explain: ExplainConfig = field(default_factory=ExplainConfig)

    def to_dict(self) -> Dict[str, Dict[str, object]]:
        return asdict(self)


_SECTIONS = {"network": NetworkConfig, "lab": LabConfig, "explain": ExplainConfig}

_PRESETS: Dict[str, Mapping[str, object]] = {
    "default": {
        "network": {"input_size": 28, "kernel_bank": "lenet", "speed": "normal"},
        "lab": {"input_size": 7, "kernel": "sobel_x", "stride": 1, "padding": 0},
    },
    "classroom-slow": {
        "network": {"input_size": 28, "kernel_bank": "lenet", "speed": "slow", "seed": 0},
        "lab": {"input_size": 7, "kernel": "edge_detect", "stride": 1, "padding": 1},
    },
    "edges-fast": {
        "network": {"input_size": 28, "kernel_bank": "edges", "speed": "fast", "seed": 0},
        "lab": {"input_size": 9, "kernel": "sobel_y", "stride": 2, "padding": 1},
    },
}


def presets() -> Dict[str, Mapping[str, object]]:
    return deepcopy(_PRESETS)


def load_preset(name: str) -> Dict[str, object]:
    if name not in _PRESETS:
        available = ", ".join(sorted(_PRESETS))
        raise ConfigurationError(f"Unknown preset {name!r}. Available presets: {available}")
    return deepcopy(dict(_PRESETS[name]))


def load_override(path: str | Path) -> dict:
    """Read a JSON or YAML override file."""

    path = Path(path)
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def merge(base: dict, override: Mapping[str, object]) -> dict:
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def resolve_config(raw: Mapping[str, object] | None = None) -> SimulationConfig:
    """Validate ``raw`` and return a :class:`SimulationConfig`."""

    raw = raw or {}
    unknown = set(raw) - set(_SECTIONS)
    if unknown:
        raise ConfigurationError(f"Unknown config sections: {', '.join(sorted(unknown))}")
    sections = {}
    for name, cls in _SECTIONS.items():
        options = raw.get(name) or {}
        if not isinstance(options, Mapping):
            raise ConfigurationError(f"Config section {name!r} must be a mapping")
        allowed = {f.name for f in fields(cls)}
        extra = set(options) - allowed
        if extra:
            raise ConfigurationError(
                f"Unknown {name} options: {', '.join(sorted(extra))}. "
                f"Allowed: {', '.join(sorted(allowed))}"
            )
        sections[name] = cls(**options)
    return SimulationConfig(**sections)


def config_hash(config: SimulationConfig | Mapping[str, object]) -> str:
    """Return a stable 12-character hash for ``config``."""

    if isinstance(config, SimulationConfig):
        config = config.to_dict()
    canonical = json.dumps(config, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:12]


__all__ = [
    "ExplainConfig",
    "LabConfig",
    "NetworkConfig",
    "PADDINGS",
    "SPEEDS",
    "STRIDES",
    "SimulationConfig",
    "config_hash",
    "load_override",
    "load_preset",
    "merge",
    "presets",
    "resolve_config",
]
