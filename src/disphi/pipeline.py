"""Per-event reconstruction pipelines for the three kaon-detection modes."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from .config import AnalysisConfig, ReconstructionMode
from .kinematics import KinematicInputs, compute_observables
from .models import DetectorRegion, Event, ReconstructedEvent
from .physics import (
    build_four_vector,
    detector_region,
    invariant_mass,
    reconstruct_missing_momentum,
    to_spherical,
)
from .pid import (
    ELECTRON_PID,
    KAON_MASS,
    KMINUS_PID,
    KPLUS_PID,
    PROTON_PID,
    SENTINEL,
)
from .selection import (
    EventPredicate,
    all_of,
    is_sentinel,
    reject_pi0_predicate,
    select_momentum,
    select_particle,
    topology_predicate,
)

logger = logging.getLogger(__name__)

Columns = Mapping[str, float]
StepFunc = Callable[[Event, Columns, float], "dict[str, float] | None"]


@dataclass(frozen=True)
class DerivationStep:
    """One named derivation: `(event, columns so far, beam energy) -> new columns`.

    Returning `None` rejects the event.
    """

    name: str
    func: StepFunc

    def __call__(self, event: Event, columns: Columns, beam_energy: float) -> dict[str, float] | None:
        return self.func(event, columns, beam_energy)


def _components(columns: Columns, prefix: str) -> tuple[float, float, float]:
    return columns[f"{prefix}_px"], columns[f"{prefix}_py"], columns[f"{prefix}_pz"]


def select_step(prefix: str, pid: int) -> DerivationStep:
    """Store the first good candidate's momentum as `<prefix>_px/py/pz`."""

    def _select(event: Event, columns: Columns, beam_energy: float) -> dict[str, float]:
        px, py, pz = select_momentum(event, pid)
        return {f"{prefix}_px": px, f"{prefix}_py": py, f"{prefix}_pz": pz}

    return DerivationStep(name=f"select_{prefix}", func=_select)


def require_detected_step(*prefixes: str) -> DerivationStep:
    """Reject the event when any selected particle is missing."""

    def _require(event: Event, columns: Columns, beam_energy: float) -> dict[str, float] | None:
        if any(is_sentinel(_components(columns, prefix)) for prefix in prefixes):
            return None
        return {}

    return DerivationStep(name="require_detected", func=_require)


def missing_kaon_step(detected_kaon: str, out_prefix: str) -> DerivationStep:
    """Reconstruct the undetected kaon from the electron, proton and other kaon."""

    def _reconstruct(event: Event, columns: Columns, beam_energy: float) -> dict[str, float]:
        px, py, pz = reconstruct_missing_momentum(
            beam_energy,
            electron=_components(columns, "ele"),
            proton=_components(columns, "pro"),
            kaon=_components(columns, detected_kaon),
        )
        return {f"{out_prefix}_px": px, f"{out_prefix}_py": py, f"{out_prefix}_pz": pz}

    return DerivationStep(name=f"reconstruct_{out_prefix}", func=_reconstruct)


def spherical_step(sources: Mapping[str, str]) -> DerivationStep:
    """Derive `<out>_p/theta/phi` for each `out -> component prefix` pair."""

    def _spherical(event: Event, columns: Columns, beam_energy: float) -> dict[str, float]:
        out: dict[str, float] = {}
        for out_prefix, in_prefix in sources.items():
            momentum = to_spherical(*_components(columns, in_prefix))
            out[f"{out_prefix}_p"] = momentum.p
            out[f"{out_prefix}_theta"] = momentum.theta
            out[f"{out_prefix}_phi"] = momentum.phi
        return out

    return DerivationStep(name="spherical_kinematics", func=_spherical)


def detector_region_step(sources: Mapping[str, int]) -> DerivationStep:
    """Detector-region code of the selected candidate of each species."""

    def _regions(event: Event, columns: Columns, beam_energy: float) -> dict[str, float]:
        out: dict[str, float] = {}
        for prefix, pid in sources.items():
            particle = select_particle(event, pid)
            region = DetectorRegion.UNKNOWN if particle is None else detector_region(particle.status)
            out[f"{prefix}_det_region"] = int(region)
        return out

    return DerivationStep(name="detector_regions", func=_regions)


def kaon_pair_mass_step(k_plus: str, k_minus: str) -> DerivationStep:
    """Invariant mass of the K+K- pair, both kaons on-shell."""

    def _mass(event: Event, columns: Columns, beam_energy: float) -> dict[str, float]:
        kp = build_four_vector(*_components(columns, k_plus), KAON_MASS)
        km = build_four_vector(*_components(columns, k_minus), KAON_MASS)
        return {"invMass_KpKm": invariant_mass(kp, km)}

    return DerivationStep(name="kaon_pair_mass", func=_mass)


def observables_step() -> DerivationStep:
    """Evaluate every invariant observable from the twelve spherical scalars."""

    def _observables(event: Event, columns: Columns, beam_energy: float) -> dict[str, float]:
        return compute_observables(KinematicInputs.from_columns(columns, beam_energy))

    return DerivationStep(name="observables", func=_observables)


def missing_kplus_aliases_step() -> DerivationStep:
    """Mass-window aliases for the K+ missing mass; the mass is the sentinel unless mass2 > 0."""

    def _aliases(event: Event, columns: Columns, beam_energy: float) -> dict[str, float]:
        mx2 = columns["Mx2_epKm"]
        return {
            "Mx2_epKm_forCut": mx2,
            "Mx_epKm_forCut": math.sqrt(mx2) if mx2 > 0.0 else SENTINEL,
        }

    return DerivationStep(name="missing_kplus_aliases", func=_aliases)


_SELECT_ELECTRON = select_step("ele", ELECTRON_PID)
_SELECT_PROTON = select_step("pro", PROTON_PID)
_SELECT_KPLUS = select_step("kPlus", KPLUS_PID)
_SELECT_KMINUS = select_step("kMinus", KMINUS_PID)

ALL_DETECTED_STEPS: tuple[DerivationStep, ...] = (
    _SELECT_ELECTRON,
    _SELECT_KMINUS,
    _SELECT_KPLUS,
    _SELECT_PROTON,
    require_detected_step("ele", "kMinus", "kPlus", "pro"),
    spherical_step(
        {"recel": "ele", "reckMinus": "kMinus", "reckPlus": "kPlus", "recpro": "pro"}
    ),
    detector_region_step(
        {"kMinus": KMINUS_PID, "kPlus": KPLUS_PID, "pro": PROTON_PID, "ele": ELECTRON_PID}
    ),
    kaon_pair_mass_step("kPlus", "kMinus"),
    observables_step(),
)

MISSING_KM_STEPS: tuple[DerivationStep, ...] = (
    _SELECT_ELECTRON,
    _SELECT_PROTON,
    _SELECT_KPLUS,
    missing_kaon_step(detected_kaon="kPlus", out_prefix="kMinus_miss"),
    spherical_step(
        {"recel": "ele", "recpro": "pro", "reckPlus": "kPlus", "reckMinus": "kMinus_miss"}
    ),
    kaon_pair_mass_step("kPlus", "kMinus_miss"),
    observables_step(),
)

MISSING_KP_STEPS: tuple[DerivationStep, ...] = (
    _SELECT_ELECTRON,
    _SELECT_PROTON,
    _SELECT_KMINUS,
    missing_kaon_step(detected_kaon="kMinus", out_prefix="kPlus_miss"),
    spherical_step(
        {"recel": "ele", "recpro": "pro", "reckMinus": "kMinus", "reckPlus": "kPlus_miss"}
    ),
    kaon_pair_mass_step("kPlus_miss", "kMinus"),
    observables_step(),
    missing_kplus_aliases_step(),
)

_MODE_STEPS: dict[ReconstructionMode, tuple[DerivationStep, ...]] = {
    ReconstructionMode.ALL_DETECTED: ALL_DETECTED_STEPS,
    ReconstructionMode.MISSING_KM: MISSING_KM_STEPS,
    ReconstructionMode.MISSING_KP: MISSING_KP_STEPS,
}


def steps_for_mode(mode: ReconstructionMode | str) -> tuple[DerivationStep, ...]:
    """Ordered derivation steps of one reconstruction mode."""
    return _MODE_STEPS[ReconstructionMode.from_name(mode)]


def run_steps(
    event: Event,
    steps: Iterable[DerivationStep],
    beam_energy: float,
) -> dict[str, float] | None:
    """Apply steps in order, accumulating columns; `None` if a step rejects."""
    columns: dict[str, float] = {}
    for step in steps:
        new_columns = step(event, columns, beam_energy)
        if new_columns is None:
            logger.debug(f"Event {event.event_id} rejected at step '{step.name}'")
            return None
        columns = {**columns, **new_columns}
    return columns


@dataclass(frozen=True)
class PhiEventReconstructor:
    """Select events and derive kinematics for one configured mode.

    Workflow per event:
    1. Optional event filter (mode topology, pi0 background rejection).
    2. Particle selection.
    3. Missing-kaon reconstruction (missing-kaon modes only).
    4. Momentum/angle triples, detector regions, K+K- mass.
    5. Invariant observables and mode-specific aliases.
    """

    config: AnalysisConfig

    @property
    def mode(self) -> ReconstructionMode:
        return self.config.mode

    @property
    def steps(self) -> tuple[DerivationStep, ...]:
        return steps_for_mode(self.config.mode)

    @property
    def topology(self) -> EventPredicate:
        return topology_predicate(self.config.mode)

    def event_filter(self, apply_topology: bool = True, reject_pi0: bool = False) -> EventPredicate | None:
        """The AND of the requested filter stages, or `None` when none apply."""
        stages: list[EventPredicate] = []
        if apply_topology:
            stages.append(self.topology)
        if reject_pi0:
            stages.append(reject_pi0_predicate())
        return all_of(*stages) if stages else None

    def select(self, event: Event, apply_topology: bool = True, reject_pi0: bool = False) -> bool:
        """Evaluate the configured filter stages on one event."""
        predicate = self.event_filter(apply_topology, reject_pi0)
        return True if predicate is None else predicate(event)

    def reconstruct(self, event: Event) -> ReconstructedEvent | None:
        """Derive the output columns of one event (no topology filtering)."""
        columns = run_steps(event, self.steps, self.config.beam_energy)
        if columns is None:
            return None
        return ReconstructedEvent(
            event_id=event.event_id,
            mode=self.config.mode.value,
            columns=columns,
        )

    def reconstruct_events(
        self,
        events: Iterable[Event],
        apply_topology: bool = True,
        reject_pi0: bool = False,
    ) -> list[ReconstructedEvent]:
        """Filter and reconstruct a stream of events, in input order."""
        predicate = self.event_filter(apply_topology, reject_pi0)
        n_events = 0
        n_selected = 0
        out: list[ReconstructedEvent] = []
        for event in events:
            n_events += 1
            if predicate is not None and not predicate(event):
                continue
            n_selected += 1
            record = self.reconstruct(event)
            if record is not None:
                out.append(record)
        if predicate is not None:
            logger.info(f"Event selection ({predicate.name}): {n_selected}/{n_events} events passed")
        logger.info(
            f"Reconstruction ({self.config.mode.value}): {len(out)}/{n_selected} events reconstructed"
        )
        return out
