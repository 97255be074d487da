"""Invariant DIS observables for `e p -> e' p' K+ K-`.

Every observable is a pure function of the same twelve scalars (momentum,
polar angle and azimuth of the electron, proton, K- and K+) plus the beam
energy. Callers never need to know whether a kaon was detected or
reconstructed from conservation.

Conventions: the beam is massless along +z, the target proton is at rest,
final-state 4-vectors are built on-shell from the species masses, angles are
returned in degrees and `t` is the (negative) Mandelstam variable.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, NamedTuple

from .models import LorentzVector, SphericalMomentum
from .physics import (
    beam_four_vector,
    cross3,
    dot3,
    norm3,
    opening_angle,
    spherical_to_four_vector,
    target_four_vector,
)
from .pid import PROTON_MASS, make_electron, make_kaon, make_proton


@dataclass(frozen=True)
class KinematicInputs:
    """Beam energy plus the spherical momenta of the four final-state particles."""

    beam_energy: float
    el_p: float
    el_theta: float
    el_phi: float
    pro_p: float
    pro_theta: float
    pro_phi: float
    km_p: float
    km_theta: float
    km_phi: float
    kp_p: float
    kp_theta: float
    kp_phi: float

    @classmethod
    def from_columns(cls, columns: Mapping[str, float], beam_energy: float) -> "KinematicInputs":
        """Read the `recel_*`, `recpro_*`, `reckMinus_*`, `reckPlus_*` columns."""
        return cls(
            beam_energy=beam_energy,
            el_p=columns["recel_p"],
            el_theta=columns["recel_theta"],
            el_phi=columns["recel_phi"],
            pro_p=columns["recpro_p"],
            pro_theta=columns["recpro_theta"],
            pro_phi=columns["recpro_phi"],
            km_p=columns["reckMinus_p"],
            km_theta=columns["reckMinus_theta"],
            km_phi=columns["reckMinus_phi"],
            kp_p=columns["reckPlus_p"],
            kp_theta=columns["reckPlus_theta"],
            kp_phi=columns["reckPlus_phi"],
        )


class _FourVectors(NamedTuple):
    beam: LorentzVector
    target: LorentzVector
    electron: LorentzVector
    proton: LorentzVector
    k_minus: LorentzVector
    k_plus: LorentzVector

    @property
    def q(self) -> LorentzVector:
        """Virtual-photon 4-momentum."""
        return self.beam - self.electron

    @property
    def phi_meson(self) -> LorentzVector:
        return self.k_plus + self.k_minus

    @property
    def initial(self) -> LorentzVector:
        return self.beam + self.target


def _four_vectors(kin: KinematicInputs) -> _FourVectors:
    return _FourVectors(
        beam=beam_four_vector(kin.beam_energy),
        target=target_four_vector(),
        electron=spherical_to_four_vector(
            SphericalMomentum(kin.el_p, kin.el_theta, kin.el_phi), make_electron().mass
        ),
        proton=spherical_to_four_vector(
            SphericalMomentum(kin.pro_p, kin.pro_theta, kin.pro_phi), make_proton().mass
        ),
        k_minus=spherical_to_four_vector(
            SphericalMomentum(kin.km_p, kin.km_theta, kin.km_phi), make_kaon(-1).mass
        ),
        k_plus=spherical_to_four_vector(
            SphericalMomentum(kin.kp_p, kin.kp_theta, kin.kp_phi), make_kaon(+1).mass
        ),
    )


def q2(kin: KinematicInputs) -> float:
    """Photon virtuality `Q2 = -q^2`."""
    return -_four_vectors(kin).q.mass2


def nu(kin: KinematicInputs) -> float:
    """Energy transfer in the target rest frame."""
    return _four_vectors(kin).q.e


def y(kin: KinematicInputs) -> float:
    """Fraction of the beam energy carried by the virtual photon; 0.0 without a beam."""
    if kin.beam_energy == 0.0:
        return 0.0
    return nu(kin) / kin.beam_energy


def x_bjorken(kin: KinematicInputs) -> float:
    """`xB = Q2 / (2 M nu)`; 0.0 when no energy is transferred."""
    energy_transfer = nu(kin)
    if energy_transfer == 0.0:
        return 0.0
    return q2(kin) / (2.0 * PROTON_MASS * energy_transfer)


def w(kin: KinematicInputs) -> float:
    """Invariant mass of the hadronic final state (signed)."""
    vecs = _four_vectors(kin)
    return (vecs.q + vecs.target).mass


def t(kin: KinematicInputs) -> float:
    """Squared momentum transfer to the proton, `(P - p')^2`."""
    vecs = _four_vectors(kin)
    return (vecs.target - vecs.proton).mass2


def trento_phi(kin: KinematicInputs) -> float:
    """Angle between the lepton and hadron planes, degrees in [0, 360).

    The hadron plane is spanned by the virtual photon and the K+K- system.
    """
    vecs = _four_vectors(kin)
    q3 = vecs.q.p3
    lepton_normal = cross3(vecs.beam.p3, vecs.electron.p3)
    hadron_normal = cross3(q3, vecs.phi_meson.p3)
    n_l = norm3(lepton_normal)
    n_h = norm3(hadron_normal)
    if n_l <= 1e-12 or n_h <= 1e-12:
        return 0.0
    cos_phi = max(-1.0, min(1.0, dot3(lepton_normal, hadron_normal) / (n_l * n_h)))
    phi = math.degrees(math.acos(cos_phi))
    if dot3(cross3(lepton_normal, hadron_normal), q3) < 0.0:
        phi = 360.0 - phi
    return phi % 360.0


def _missing(kin: KinematicInputs, *names: str) -> LorentzVector:
    vecs = _four_vectors(kin)
    total = vecs.initial
    for name in names:
        total = total - getattr(vecs, name)
    return total


def mx2_ep(kin: KinematicInputs) -> float:
    return _missing(kin, "electron", "proton").mass2


def mx2_epkpkm(kin: KinematicInputs) -> float:
    return _missing(kin, "electron", "proton", "k_plus", "k_minus").mass2


def mx2_ekpkm(kin: KinematicInputs) -> float:
    return _missing(kin, "electron", "k_plus", "k_minus").mass2


def mx2_epkp(kin: KinematicInputs) -> float:
    """Missing mass squared of `e p -> e' p' K+ X`: the K- candidate."""
    return _missing(kin, "electron", "proton", "k_plus").mass2


def mx2_epkm(kin: KinematicInputs) -> float:
    """Missing mass squared of `e p -> e' p' K- X`: the K+ candidate."""
    return _missing(kin, "electron", "proton", "k_minus").mass2


def missing_energy(kin: KinematicInputs) -> float:
    return _missing(kin, "electron", "proton", "k_plus", "k_minus").e


def missing_pt(kin: KinematicInputs) -> float:
    return _missing(kin, "electron", "proton", "k_plus", "k_minus").pt


def delta_e(kin: KinematicInputs) -> float:
    """Final-state minus initial-state energy."""
    return -missing_energy(kin)


def delta_phi(kin: KinematicInputs) -> float:
    """Coplanarity: angle between the (q, K+K-) and (p', q) planes in degrees."""
    vecs = _four_vectors(kin)
    q3 = vecs.q.p3
    return opening_angle(cross3(q3, vecs.phi_meson.p3), cross3(vecs.proton.p3, q3))


def theta_x_phimeson(kin: KinematicInputs) -> float:
    """Cone angle between the K+K- system and the `e p -> e' p' X` missing system."""
    vecs = _four_vectors(kin)
    return opening_angle(_missing(kin, "electron", "proton").p3, vecs.phi_meson.p3)


def theta_e_phimeson(kin: KinematicInputs) -> float:
    """Angle between the scattered electron and the K+K- system."""
    vecs = _four_vectors(kin)
    return opening_angle(vecs.electron.p3, vecs.phi_meson.p3)


class Observable(str, Enum):
    """Named invariant observables, valued by their output column name."""

    Q2 = "Q2"
    XB = "xB"
    T = "t"
    PHI = "phi"
    W = "W"
    NU = "nu"
    Y = "y"
    MX2_EP = "Mx2_ep"
    EMISS = "Emiss"
    PTMISS = "PTmiss"
    MX2_EPKPKM = "Mx2_epKpKm"
    MX2_EKPKM = "Mx2_eKpKm"
    MX2_EPKP = "Mx2_epKp"
    MX2_EPKM = "Mx2_epKm"
    DELTA_PHI = "DeltaPhi"
    THETA_G_PHIMESON = "Theta_g_phimeson"
    THETA_E_PHIMESON = "Theta_e_phimeson"
    DELTA_E = "DeltaE"


OBSERVABLE_FUNCTIONS: Mapping[Observable, Callable[[KinematicInputs], float]] = {
    Observable.Q2: q2,
    Observable.XB: x_bjorken,
    Observable.T: t,
    Observable.PHI: trento_phi,
    Observable.W: w,
    Observable.NU: nu,
    Observable.Y: y,
    Observable.MX2_EP: mx2_ep,
    Observable.EMISS: missing_energy,
    Observable.PTMISS: missing_pt,
    Observable.MX2_EPKPKM: mx2_epkpkm,
    Observable.MX2_EKPKM: mx2_ekpkm,
    Observable.MX2_EPKP: mx2_epkp,
    Observable.MX2_EPKM: mx2_epkm,
    Observable.DELTA_PHI: delta_phi,
    Observable.THETA_G_PHIMESON: theta_x_phimeson,
    Observable.THETA_E_PHIMESON: theta_e_phimeson,
    Observable.DELTA_E: delta_e,
}


def compute_observable(observable: Observable | str, inputs: KinematicInputs) -> float:
    """Evaluate one named observable."""
    return OBSERVABLE_FUNCTIONS[Observable(observable)](inputs)


def compute_observables(inputs: KinematicInputs) -> dict[str, float]:
    """Evaluate all observables, keyed by column name in declaration order."""
    return {obs.value: func(inputs) for obs, func in OBSERVABLE_FUNCTIONS.items()}
