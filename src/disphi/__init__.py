"""Public package exports for the DIS phi-meson reconstruction pipeline."""

from .config import AnalysisConfig, ConfigurationError, ReconstructionMode
from .kinematics import KinematicInputs, Observable, compute_observable, compute_observables
from .models import (
    DetectedParticle,
    DetectorRegion,
    Event,
    LorentzVector,
    ParticleSpecies,
    ReconstructedEvent,
    SphericalMomentum,
)
from .pid import (
    SENTINEL,
    SENTINEL_MOMENTUM,
    make_electron,
    make_kaon,
    make_proton,
    species_from_name,
    species_from_pid,
)
from .pipeline import DerivationStep, PhiEventReconstructor, steps_for_mode
from .selection import (
    EventPredicate,
    all_of,
    exclusive_phi_predicate,
    missing_km_predicate,
    missing_kp_predicate,
    reject_pi0_predicate,
    select_momentum,
    select_particle,
    topology_predicate,
)

__all__ = [
    "AnalysisConfig",
    "ConfigurationError",
    "ReconstructionMode",
    "KinematicInputs",
    "Observable",
    "compute_observable",
    "compute_observables",
    "DetectedParticle",
    "DetectorRegion",
    "Event",
    "LorentzVector",
    "ParticleSpecies",
    "ReconstructedEvent",
    "SphericalMomentum",
    "SENTINEL",
    "SENTINEL_MOMENTUM",
    "make_electron",
    "make_kaon",
    "make_proton",
    "species_from_name",
    "species_from_pid",
    "DerivationStep",
    "PhiEventReconstructor",
    "steps_for_mode",
    "EventPredicate",
    "all_of",
    "exclusive_phi_predicate",
    "missing_km_predicate",
    "missing_kp_predicate",
    "reject_pi0_predicate",
    "select_momentum",
    "select_particle",
    "topology_predicate",
]
