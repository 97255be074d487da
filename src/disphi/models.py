"""Core data models used by the phi-meson reconstruction pipeline.

This module defines:
- immutable detector inputs (`DetectedParticle`, `Event`)
- kinematic value objects (`LorentzVector`, `SphericalMomentum`)
- species descriptions (`ParticleSpecies`)
- the detector-region classification (`DetectorRegion`)
- per-event pipeline output (`ReconstructedEvent`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Mapping, Sequence

Vector3 = tuple[float, float, float]


@dataclass(frozen=True)
class ParticleSpecies:
    """Named particle species with PDG id, rest mass (GeV) and charge."""

    name: str
    pdg_id: int
    mass: float
    charge: int = 0


@dataclass(frozen=True)
class DetectedParticle:
    """One reconstructed particle of an event.

    `passes` is the track-quality selection flag, `daughter_pass` marks the
    particle as a daughter of a reconstructed resonance, and `status` is the
    raw detector status code (its magnitude encodes the detector region).
    """

    pid: int
    px: float
    py: float
    pz: float
    passes: bool = True
    daughter_pass: bool = False
    status: int = 0

    @property
    def momentum(self) -> Vector3:
        """Cartesian three-momentum `(px, py, pz)`."""
        return self.px, self.py, self.pz


@dataclass(frozen=True)
class Event:
    """One event payload: an ordered, read-only list of detected particles."""

    event_id: str
    particles: tuple[DetectedParticle, ...]

    def __iter__(self) -> Iterator[DetectedParticle]:
        return iter(self.particles)

    def __len__(self) -> int:
        return len(self.particles)

    @classmethod
    def from_columns(
        cls,
        event_id: str,
        pid: Sequence[int],
        px: Sequence[float],
        py: Sequence[float],
        pz: Sequence[float],
        passes: Sequence[bool] | None = None,
        daughter_pass: Sequence[bool] | None = None,
        status: Sequence[int] | None = None,
    ) -> "Event":
        """Build an event from the parallel per-particle arrays of one entry.

        Missing flag arrays default to "passes" / "not a daughter" / status 0.
        """
        n = len(pid)
        passes = [True] * n if passes is None else passes
        daughter_pass = [False] * n if daughter_pass is None else daughter_pass
        status = [0] * n if status is None else status
        for name, column in (
            ("px", px),
            ("py", py),
            ("pz", pz),
            ("pass", passes),
            ("daughter_pass", daughter_pass),
            ("status", status),
        ):
            if len(column) != n:
                raise ValueError(
                    f"Event '{event_id}': column '{name}' has length {len(column)}, expected {n}."
                )
        particles = tuple(
            DetectedParticle(
                pid=int(pid[i]),
                px=float(px[i]),
                py=float(py[i]),
                pz=float(pz[i]),
                passes=bool(passes[i]),
                daughter_pass=bool(daughter_pass[i]),
                status=int(status[i]),
            )
            for i in range(n)
        )
        return cls(event_id=str(event_id), particles=particles)


@dataclass(frozen=True)
class LorentzVector:
    """Simple 4-vector with convenience properties and arithmetic."""

    px: float
    py: float
    pz: float
    e: float

    def __add__(self, other: "LorentzVector") -> "LorentzVector":
        """Component-wise 4-vector addition."""
        return LorentzVector(
            self.px + other.px,
            self.py + other.py,
            self.pz + other.pz,
            self.e + other.e,
        )

    def __sub__(self, other: "LorentzVector") -> "LorentzVector":
        """Component-wise 4-vector subtraction."""
        return LorentzVector(
            self.px - other.px,
            self.py - other.py,
            self.pz - other.pz,
            self.e - other.e,
        )

    @property
    def p3(self) -> Vector3:
        """Three-momentum part."""
        return self.px, self.py, self.pz

    @property
    def p2(self) -> float:
        """Squared 3-momentum magnitude."""
        return self.px * self.px + self.py * self.py + self.pz * self.pz

    @property
    def p(self) -> float:
        return self.p2**0.5

    @property
    def pt(self) -> float:
        """Momentum transverse to the beam (z) axis."""
        return (self.px * self.px + self.py * self.py) ** 0.5

    @property
    def mass2(self) -> float:
        """Invariant mass squared."""
        return self.e * self.e - self.p2

    @property
    def mass(self) -> float:
        """Invariant mass with signed handling for small negative mass2 values."""
        m2 = self.mass2
        return m2**0.5 if m2 >= 0.0 else -((-m2) ** 0.5)


@dataclass(frozen=True)
class SphericalMomentum:
    """Momentum magnitude, polar angle and azimuth (radians, azimuth in [0, 2pi))."""

    p: float
    theta: float
    phi: float


class DetectorRegion(IntEnum):
    """Coarse detector region derived from the particle status code."""

    UNKNOWN = -1
    FORWARD_TAGGER = 0
    FORWARD_DETECTOR = 1
    CENTRAL_DETECTOR = 2

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


@dataclass(frozen=True)
class ReconstructedEvent:
    """Derived per-event columns produced by one reconstruction mode."""

    event_id: str
    mode: str
    columns: Mapping[str, float] = field(default_factory=dict)

    def __getitem__(self, key: str) -> float:
        return self.columns[key]

    def __contains__(self, key: object) -> bool:
        return key in self.columns
