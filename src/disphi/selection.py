"""Particle selection and event-level topology predicates."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable

from .config import ReconstructionMode
from .models import DetectedParticle, Event, Vector3
from .pid import (
    ELECTRON_PID,
    KMINUS_PID,
    KPLUS_PID,
    PHOTON_PID,
    PROTON_PID,
    SENTINEL,
    SENTINEL_MOMENTUM,
    charge_of,
)

_KAON_PIDS = (KPLUS_PID, KMINUS_PID)


def select_particle(
    event: Event,
    pid: int,
    exclude_resonance_daughters: bool = False,
) -> DetectedParticle | None:
    """Return the first quality-passing particle of a species, in stored order.

    No attempt is made to rank several candidates: the first match wins.
    With `exclude_resonance_daughters`, candidates flagged as daughters of a
    reconstructed resonance are skipped.
    """
    for particle in event.particles:
        if particle.pid != pid or not particle.passes:
            continue
        if exclude_resonance_daughters and particle.daughter_pass:
            continue
        return particle
    return None


def select_momentum(
    event: Event,
    pid: int,
    exclude_resonance_daughters: bool = False,
) -> Vector3:
    """Three-momentum of the selected particle, or the sentinel triple."""
    particle = select_particle(event, pid, exclude_resonance_daughters)
    if particle is None:
        return SENTINEL_MOMENTUM
    return particle.momentum


def is_sentinel(momentum: Vector3) -> bool:
    """True for the "not found" momentum triple."""
    return all(component == SENTINEL for component in momentum)


def count_species(event: Event) -> Counter[int]:
    """Multiplicity of quality-passing particles per species id."""
    return Counter(p.pid for p in event.particles if p.passes)


def total_charge(event: Event) -> int:
    """Summed charge of quality-passing particles of known species."""
    return sum(charge_of(p.pid) for p in event.particles if p.passes)


@dataclass(frozen=True)
class EventPredicate:
    """Named boolean test over one event with a fixed rationale."""

    name: str
    description: str
    func: Callable[[Event], bool]

    def __call__(self, event: Event) -> bool:
        return bool(self.func(event))


def all_of(*predicates: EventPredicate) -> EventPredicate:
    """Compose predicates with logical AND."""
    if not predicates:
        raise ValueError("At least one predicate is required.")
    if len(predicates) == 1:
        return predicates[0]
    return EventPredicate(
        name=" & ".join(p.name for p in predicates),
        description="; ".join(p.description for p in predicates),
        func=lambda event: all(p(event) for p in predicates),
    )


def exclusive_phi_predicate(check_kaon_daughters: bool = False) -> EventPredicate:
    """One electron, at least one K+, K- and proton.

    The kaon phi-daughter requirement is disabled unless
    `check_kaon_daughters` is set, in which case at least one quality-passing
    kaon must be flagged as a phi daughter.
    """

    def _accept(event: Event) -> bool:
        counts = count_species(event)
        kaons_from_phi = True
        if check_kaon_daughters:
            kaons_from_phi = any(
                p.daughter_pass for p in event.particles if p.passes and p.pid in _KAON_PIDS
            )
        return (
            counts[ELECTRON_PID] == 1
            and counts[KPLUS_PID] >= 1
            and counts[KMINUS_PID] >= 1
            and counts[PROTON_PID] >= 1
            and kaons_from_phi
        )

    return EventPredicate(
        name="exclusive_phi",
        description=(
            "Cut: 1 e-, >=1 K+, >=1 K-, >=1 proton, >=1 kaon from phi"
            if check_kaon_daughters
            else "Cut: 1 e-, >=1 K+, >=1 K-, >=1 proton"
        ),
        func=_accept,
    )


def missing_km_predicate() -> EventPredicate:
    """Topology for K- reconstruction: the K- is not required."""

    def _accept(event: Event) -> bool:
        counts = count_species(event)
        return counts[ELECTRON_PID] == 1 and counts[KPLUS_PID] >= 1 and counts[PROTON_PID] >= 1

    return EventPredicate(
        name="missing_km",
        description="Cut: 1 e-, >=1 K+, >=1 proton (missing K- workflow)",
        func=_accept,
    )


def missing_kp_predicate() -> EventPredicate:
    """Topology for K+ reconstruction: the K+ is not required."""

    def _accept(event: Event) -> bool:
        counts = count_species(event)
        return counts[ELECTRON_PID] == 1 and counts[KMINUS_PID] >= 1 and counts[PROTON_PID] >= 1

    return EventPredicate(
        name="missing_kp",
        description="Cut: 1 e-, >=1 K-, >=1 proton (missing K+ workflow)",
        func=_accept,
    )


def reject_pi0_predicate() -> EventPredicate:
    """Reject pi0 two-photon background.

    Any quality-passing particle flagged as a resonance daughter vetoes the
    event; otherwise exactly one electron, one photon and one proton are
    required.
    """

    def _accept(event: Event) -> bool:
        electrons = photons = protons = 0
        for particle in event.particles:
            if not particle.passes:
                continue
            if particle.daughter_pass:
                return False
            if particle.pid == ELECTRON_PID:
                electrons += 1
            elif particle.pid == PHOTON_PID:
                photons += 1
            elif particle.pid == PROTON_PID:
                protons += 1
        return electrons == 1 and photons == 1 and protons == 1

    return EventPredicate(
        name="reject_pi0",
        description="Cut: one good e-, gamma (not pi0-like), proton",
        func=_accept,
    )


def topology_predicate(mode: ReconstructionMode | str) -> EventPredicate:
    """The topology predicate matching a reconstruction mode."""
    mode = ReconstructionMode.from_name(mode)
    if mode is ReconstructionMode.ALL_DETECTED:
        return exclusive_phi_predicate()
    if mode is ReconstructionMode.MISSING_KM:
        return missing_km_predicate()
    return missing_kp_predicate()
