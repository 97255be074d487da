"""Physics/math helpers: geometry, four-vectors and missing-particle recovery."""

from __future__ import annotations

import math
from typing import Iterable

from .models import DetectorRegion, LorentzVector, SphericalMomentum, Vector3
from .pid import ELECTRON_MASS, KAON_MASS, PROTON_MASS

TWO_PI = 2.0 * math.pi


def momentum_magnitude(px: float, py: float, pz: float) -> float:
    """Magnitude of a Cartesian three-momentum."""
    return math.sqrt(px * px + py * py + pz * pz)


def polar_angle(px: float, py: float, pz: float) -> float:
    """Polar angle w.r.t. the beam (z) axis in radians.

    A zero-length vector has no direction; 0.0 is returned instead of NaN.
    """
    p = momentum_magnitude(px, py, pz)
    if p <= 0.0:
        return 0.0
    return math.acos(max(-1.0, min(1.0, pz / p)))


def azimuthal_angle(px: float, py: float) -> float:
    """Azimuthal angle in radians, normalized to [0, 2pi)."""
    phi = math.atan2(py, px)
    if phi < 0.0:
        phi += TWO_PI
    # A tiny negative angle shifted by 2pi rounds up to exactly 2pi.
    return 0.0 if phi >= TWO_PI else phi


def to_spherical(px: float, py: float, pz: float) -> SphericalMomentum:
    """Convert Cartesian components into `(p, theta, phi)`."""
    return SphericalMomentum(
        p=momentum_magnitude(px, py, pz),
        theta=polar_angle(px, py, pz),
        phi=azimuthal_angle(px, py),
    )


def from_spherical(p: float, theta: float, phi: float) -> Vector3:
    """Convert `(p, theta, phi)` back into Cartesian components."""
    sin_theta = math.sin(theta)
    return (
        p * sin_theta * math.cos(phi),
        p * sin_theta * math.sin(phi),
        p * math.cos(theta),
    )


def build_four_vector(px: float, py: float, pz: float, mass: float) -> LorentzVector:
    """Convert a three-momentum plus mass hypothesis into an on-shell 4-vector."""
    energy = math.sqrt(px * px + py * py + pz * pz + mass * mass)
    return LorentzVector(px=px, py=py, pz=pz, e=energy)


def spherical_to_four_vector(momentum: SphericalMomentum, mass: float) -> LorentzVector:
    """On-shell 4-vector from `(p, theta, phi)` and a mass hypothesis."""
    return build_four_vector(*from_spherical(momentum.p, momentum.theta, momentum.phi), mass)


def sum_lorentz(vectors: Iterable[LorentzVector]) -> LorentzVector:
    """Sum an iterable of Lorentz vectors."""
    total = LorentzVector(0.0, 0.0, 0.0, 0.0)
    for vec in vectors:
        total = total + vec
    return total


def beam_four_vector(beam_energy: float) -> LorentzVector:
    """Incoming electron beam along +z, treated as massless."""
    return LorentzVector(0.0, 0.0, beam_energy, beam_energy)


def target_four_vector() -> LorentzVector:
    """Proton target at rest."""
    return LorentzVector(0.0, 0.0, 0.0, PROTON_MASS)


def missing_four_vector(beam_energy: float, detected: Iterable[LorentzVector]) -> LorentzVector:
    """Four-momentum not accounted for by the detected particles.

    `beam + target - sum(detected)`.
    """
    initial = beam_four_vector(beam_energy) + target_four_vector()
    return initial - sum_lorentz(detected)


def reconstruct_missing_momentum(
    beam_energy: float,
    electron: Vector3,
    proton: Vector3,
    kaon: Vector3,
) -> Vector3:
    """Recover the undetected kaon's three-momentum from conservation.

    The detected electron, proton and kaon are put on-shell with their rest
    masses. Only the momentum components of the missing 4-vector are kept;
    its energy is discarded and downstream quantities treat the result as a
    measured kaon momentum.
    """
    missing = missing_four_vector(
        beam_energy,
        (
            build_four_vector(*electron, ELECTRON_MASS),
            build_four_vector(*proton, PROTON_MASS),
            build_four_vector(*kaon, KAON_MASS),
        ),
    )
    return missing.p3


def invariant_mass(a: LorentzVector, b: LorentzVector) -> float:
    """Signed invariant mass of a two-particle system."""
    return (a + b).mass


def detector_region(status: int) -> DetectorRegion:
    """Classify a particle status code into a detector region."""
    abs_status = abs(int(status))
    if 1000 <= abs_status < 2000:
        return DetectorRegion.FORWARD_TAGGER
    if 2000 <= abs_status < 3000:
        return DetectorRegion.FORWARD_DETECTOR
    if 4000 <= abs_status < 5000:
        return DetectorRegion.CENTRAL_DETECTOR
    return DetectorRegion.UNKNOWN


def dot3(a: Vector3, b: Vector3) -> float:
    """3D dot product."""
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross3(a: Vector3, b: Vector3) -> Vector3:
    """3D cross product."""
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def norm3(a: Vector3) -> float:
    """Euclidean norm of a 3D vector."""
    return math.sqrt(dot3(a, a))


def opening_angle(a: Vector3, b: Vector3) -> float:
    """Angle between two 3D vectors in degrees (0.0 if either one vanishes)."""
    na = norm3(a)
    nb = norm3(b)
    if na <= 1e-12 or nb <= 1e-12:
        return 0.0
    cos_angle = max(-1.0, min(1.0, dot3(a, b) / (na * nb)))
    return math.degrees(math.acos(cos_angle))
