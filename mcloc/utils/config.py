"""
Configuration for localization runs.

A run is described by a LocalizationConfig: noise levels shared by the robot
and the filter, the initial pose estimate, population size, resampling
settings, and the square-path scenario geometry. Configs can be built in code,
from a plain dictionary, or from a small YAML file such as
configs/square_room.yaml.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields
from typing import Any

RESAMPLE_METHODS = ("multinomial", "systematic", "stratified")


def _parse_scalar(value: str) -> Any:
    """Convert a YAML scalar to int, float, bool, None or str."""
    value = value.strip()
    if value in ("", "~", "null", "None"):
        return None
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    # Allow "pi" based expressions such as "pi/2" or "-pi/2" for angles
    lowered = value.replace(" ", "").lower()
    sign = -1.0 if lowered.startswith("-") else 1.0
    lowered = lowered.lstrip("+-")
    if lowered == "pi":
        return sign * math.pi
    if lowered.startswith("pi/"):
        try:
            return sign * math.pi / float(lowered[3:])
        except ValueError:
            pass
    return value


def _parse_yaml_simple(content: str) -> dict:
    """
    Minimal YAML reader for flat configuration files.

    Only handles the format used for localization configs: top-level
    ``key: value`` pairs and inline lists ``key: [a, b, c]``. Comments
    (``#``) and blank lines are ignored.
    """
    cfg = {}
    for lineno, raw in enumerate(content.split('\n'), start=1):
        line = raw.split('#', 1)[0].rstrip()
        if not line.strip():
            continue
        if line[0] in (' ', '\t'):
            raise ValueError(f"Nested YAML is not supported (line {lineno}): {raw!r}")
        if ':' not in line:
            raise ValueError(f"Expected 'key: value' on line {lineno}: {raw!r}")

        key, value = line.split(':', 1)
        key = key.strip()
        value = value.strip()

        if value.startswith('['):
            if not value.endswith(']'):
                raise ValueError(f"Unterminated list on line {lineno}: {raw!r}")
            inner = value[1:-1].strip()
            cfg[key] = [_parse_scalar(x) for x in inner.split(',')] if inner else []
        else:
            cfg[key] = _parse_scalar(value)
    return cfg


@dataclass
class LocalizationConfig:
    """
    Parameters of a localization run.

    Attributes
    ----------
    sigma_pos : float
        Standard deviation of translation noise (also the initial x/y spread).
    sigma_rot : float
        Standard deviation of rotation noise in radians (also the initial
        heading spread).
    sigma_sense : float
        Standard deviation of range measurement noise.
    initial_pose : tuple of float
        Initial pose (x, y, theta) of the robot and of the filter's prior.
    num_particles : int
        Population size N.
    resample_threshold : float
        Resample when ESS < resample_threshold * N.
    resample_method : str
        One of 'multinomial', 'systematic', 'stratified'.
    seed : int or None
        Seed of the root random generator. None draws a nondeterministic seed.
    room_size : float
        Side length of the square room.
    side_lengths : tuple of int
        Number of forward steps on each side of the square path.
    forward_distance : float
        Commanded distance of each forward step.
    turn_angle : float
        Commanded rotation at each corner (radians, counter-clockwise positive).
    """

    sigma_pos: float = 0.1
    sigma_rot: float = 0.05
    sigma_sense: float = 0.3
    initial_pose: tuple = (1.0, 1.0, 0.0)
    num_particles: int = 500
    resample_threshold: float = 0.5
    resample_method: str = "multinomial"
    seed: int | None = None
    room_size: float = 10.0
    side_lengths: tuple = field(default_factory=lambda: (8, 8, 8, 8))
    forward_distance: float = 1.0
    turn_angle: float = math.pi / 2

    def __post_init__(self) -> None:
        self.initial_pose = tuple(float(v) for v in self.initial_pose)
        self.side_lengths = tuple(int(v) for v in self.side_lengths)
        self.validate()

    def validate(self) -> None:
        """Raise ValueError if any parameter is out of range."""
        for name in ("sigma_pos", "sigma_rot", "sigma_sense"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.sigma_sense == 0:
            raise ValueError("sigma_sense must be positive")
        if len(self.initial_pose) != 3:
            raise ValueError(f"initial_pose must have 3 components, got {self.initial_pose}")
        if self.num_particles <= 0:
            raise ValueError(f"num_particles must be positive, got {self.num_particles}")
        if not 0.0 < self.resample_threshold <= 1.0:
            raise ValueError(
                f"resample_threshold must be in (0, 1], got {self.resample_threshold}"
            )
        if self.resample_method not in RESAMPLE_METHODS:
            raise ValueError(
                f"Unknown resampling method: {self.resample_method}. "
                f"Expected one of {RESAMPLE_METHODS}"
            )
        if self.room_size <= 0:
            raise ValueError(f"room_size must be positive, got {self.room_size}")
        if any(n < 0 for n in self.side_lengths):
            raise ValueError(f"side_lengths must be non-negative, got {self.side_lengths}")

    @staticmethod
    def from_config(cfg: dict) -> "LocalizationConfig":
        """
        Construct a LocalizationConfig from a configuration dictionary.

        Unknown keys are rejected so that typos do not silently fall back to
        defaults.
        """
        known = {f.name for f in fields(LocalizationConfig)}
        unknown = set(cfg) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return LocalizationConfig(**cfg)

    def to_dict(self) -> dict:
        return asdict(self)


def load_config(config_path: str) -> LocalizationConfig:
    """
    Load a LocalizationConfig from a YAML file.

    Parameters
    ----------
    config_path : str
        Path to the YAML config.

    Returns
    -------
    LocalizationConfig
        Validated configuration.
    """
    with open(config_path, "r") as f:
        content = f.read()
    return LocalizationConfig.from_config(_parse_yaml_simple(content))
