"""Particle species table shared by every reconstruction mode.

Species ids follow the PDG numbering used by the reconstruction banks. The
rest masses are the values the analysis has always used; they are defined
here once and imported everywhere else.
"""

from __future__ import annotations

from .models import ParticleSpecies

SENTINEL = -999.0
SENTINEL_MOMENTUM = (SENTINEL, SENTINEL, SENTINEL)

ELECTRON_PID = 11
PROTON_PID = 2212
KPLUS_PID = 321
KMINUS_PID = -321
PHOTON_PID = 22

ELECTRON_MASS = 0.000511
PROTON_MASS = 0.938272
KAON_MASS = 0.493677

_ELECTRON = ParticleSpecies(name="e-", pdg_id=ELECTRON_PID, mass=ELECTRON_MASS, charge=-1)
_PROTON = ParticleSpecies(name="p", pdg_id=PROTON_PID, mass=PROTON_MASS, charge=1)
_KPLUS = ParticleSpecies(name="K+", pdg_id=KPLUS_PID, mass=KAON_MASS, charge=1)
_KMINUS = ParticleSpecies(name="K-", pdg_id=KMINUS_PID, mass=KAON_MASS, charge=-1)
_PHOTON = ParticleSpecies(name="gamma", pdg_id=PHOTON_PID, mass=0.0, charge=0)

_NAME_TO_SPECIES: dict[str, ParticleSpecies] = {
    "e": _ELECTRON,
    "e-": _ELECTRON,
    "electron": _ELECTRON,
    "p": _PROTON,
    "proton": _PROTON,
    "k+": _KPLUS,
    "kplus": _KPLUS,
    "k-": _KMINUS,
    "kminus": _KMINUS,
    "gamma": _PHOTON,
    "photon": _PHOTON,
}

_PID_TO_SPECIES: dict[int, ParticleSpecies] = {
    s.pdg_id: s for s in (_ELECTRON, _PROTON, _KPLUS, _KMINUS, _PHOTON)
}


def make_electron() -> ParticleSpecies:
    """Return the electron species."""
    return _ELECTRON


def make_proton() -> ParticleSpecies:
    """Return the proton species."""
    return _PROTON


def make_kaon(charge: int) -> ParticleSpecies:
    """Return the charged kaon of the requested sign."""
    if charge > 0:
        return _KPLUS
    if charge < 0:
        return _KMINUS
    raise ValueError("Charged kaon requires a non-zero charge sign.")


def species_from_name(name: str) -> ParticleSpecies:
    """Resolve a short particle name (e.g. `e`, `K+`, `proton`) into a species."""
    key = name.strip().lower()
    try:
        return _NAME_TO_SPECIES[key]
    except KeyError as exc:
        supported = ", ".join(sorted(_NAME_TO_SPECIES))
        raise ValueError(
            f"Unknown particle species name '{name}'. Supported names: {supported}"
        ) from exc


def species_from_pid(pdg_id: int) -> ParticleSpecies:
    """Resolve a PDG id into a species."""
    try:
        return _PID_TO_SPECIES[int(pdg_id)]
    except KeyError as exc:
        supported = ", ".join(str(k) for k in sorted(_PID_TO_SPECIES))
        raise ValueError(
            f"Unknown particle species id {pdg_id}. Supported ids: {supported}"
        ) from exc


def charge_of(pdg_id: int) -> int:
    """Electric charge for a known species id, 0 for anything else."""
    species = _PID_TO_SPECIES.get(int(pdg_id))
    return 0 if species is None else species.charge
