"""
Controller configuration: gains, thrust-map parameters and law selection.
Parameters are validated once at load time; an invalid set aborts startup.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from common.math import GRAVITY

CONTROLLER_CHOICES = ("linear", "geometric")


class ConfigurationError(ValueError):
    """Raised when controller parameters cannot be used."""


@dataclass
class Gains:
    kp: Tuple[float, float, float] = (1.5, 1.5, 1.5)  # position, per axis
    kv: Tuple[float, float, float] = (1.5, 1.5, 1.5)  # velocity, per axis


@dataclass
class ThrustMapParams:
    hover_percentage: float = 0.3  # normalized thrust needed to hover
    rho: float = 0.998  # RLS forgetting factor


@dataclass
class ControllerParams:
    gravity: float = GRAVITY
    gains: Gains = field(default_factory=Gains)
    thr_map: ThrustMapParams = field(default_factory=ThrustMapParams)
    controller: str = "linear"

    def validate(self) -> "ControllerParams":
        hover = self.thr_map.hover_percentage
        if not math.isfinite(hover) or hover <= 0.0:
            raise ConfigurationError(f"thr_map.hover_percentage must be > 0, got {hover}")
        if not math.isfinite(self.gravity) or self.gravity <= 0.0:
            raise ConfigurationError(f"gravity must be > 0, got {self.gravity}")
        if not 0.0 < self.thr_map.rho <= 1.0:
            raise ConfigurationError(f"thr_map.rho must be in (0, 1], got {self.thr_map.rho}")
        for name in ("kp", "kv"):
            gains = getattr(self.gains, name)
            if len(gains) != 3:
                raise ConfigurationError(f"gains.{name} needs 3 entries, got {len(gains)}")
            if not all(math.isfinite(g) for g in gains):
                raise ConfigurationError(f"gains.{name} must be finite, got {gains}")
        if self.controller not in CONTROLLER_CHOICES:
            raise ConfigurationError(
                f"controller must be one of {CONTROLLER_CHOICES}, got '{self.controller}'"
            )
        return self


def _axis_gains(gain: Mapping[str, Any], prefix: str, default: Tuple[float, float, float]):
    return tuple(float(gain.get(f"{prefix}{i}", default[i])) for i in range(3))


def load_params(mapping: Optional[Mapping[str, Any]] = None) -> ControllerParams:
    """
    Build validated params from a nested mapping shaped like:

        gra: 9.81
        controller: linear
        gain: {Kp0, Kp1, Kp2, Kv0, Kv1, Kv2}
        thr_map: {hover_percentage, rho}

    Missing keys keep their defaults. QUADCTRL_CONTROLLER overrides the law selector.
    """
    mapping = mapping or {}
    defaults = ControllerParams()
    gain = mapping.get("gain", {}) or {}
    thr_map = mapping.get("thr_map", {}) or {}
    try:
        params = ControllerParams(
            gravity=float(mapping.get("gra", defaults.gravity)),
            gains=Gains(
                kp=_axis_gains(gain, "Kp", defaults.gains.kp),
                kv=_axis_gains(gain, "Kv", defaults.gains.kv),
            ),
            thr_map=ThrustMapParams(
                hover_percentage=float(thr_map.get("hover_percentage", defaults.thr_map.hover_percentage)),
                rho=float(thr_map.get("rho", defaults.thr_map.rho)),
            ),
            controller=str(mapping.get("controller", defaults.controller)).lower(),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"malformed controller parameters: {exc}") from exc

    override = os.environ.get("QUADCTRL_CONTROLLER")
    if override:
        params.controller = override.lower()
    return params.validate()


__all__ = [
    "CONTROLLER_CHOICES",
    "ConfigurationError",
    "Gains",
    "ThrustMapParams",
    "ControllerParams",
    "load_params",
]
