"""Run configuration: beam energy and reconstruction mode."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class ConfigurationError(ValueError):
    """Raised when the run configuration is invalid.

    Configuration is validated once, before any event is processed.
    """


class ReconstructionMode(str, Enum):
    """Which kaons are taken from detection and which one is reconstructed."""

    ALL_DETECTED = "all-detected"
    MISSING_KM = "missing-km"
    MISSING_KP = "missing-kp"

    @classmethod
    def from_name(cls, name: "str | ReconstructionMode") -> "ReconstructionMode":
        """Resolve a mode name, accepting the exclusive-channel aliases.

        `exclusive-kp` means only the K+ is required (K- reconstructed), so it
        maps to `missing-km`; `exclusive-km` maps to `missing-kp`.
        """
        if isinstance(name, ReconstructionMode):
            return name
        key = str(name).strip().lower().replace("_", "-")
        try:
            return _MODE_ALIASES[key]
        except KeyError as exc:
            supported = ", ".join(sorted(_MODE_ALIASES))
            raise ConfigurationError(
                f"Unknown reconstruction mode '{name}'. Supported modes: {supported}"
            ) from exc


_MODE_ALIASES: dict[str, ReconstructionMode] = {
    "all-detected": ReconstructionMode.ALL_DETECTED,
    "missing-km": ReconstructionMode.MISSING_KM,
    "missing-kp": ReconstructionMode.MISSING_KP,
    "exclusive-kp": ReconstructionMode.MISSING_KM,
    "exclusive-km": ReconstructionMode.MISSING_KP,
}


@dataclass(frozen=True)
class AnalysisConfig:
    """Per-run settings shared by every event."""

    beam_energy: float
    mode: ReconstructionMode = ReconstructionMode.ALL_DETECTED

    def __post_init__(self) -> None:
        try:
            energy = float(self.beam_energy)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Beam energy must be a number, got {self.beam_energy!r}."
            ) from exc
        if not math.isfinite(energy) or energy <= 0.0:
            raise ConfigurationError(
                f"Beam energy must be a positive finite value in GeV, got {self.beam_energy!r}."
            )
        object.__setattr__(self, "beam_energy", energy)
        object.__setattr__(self, "mode", ReconstructionMode.from_name(self.mode))
