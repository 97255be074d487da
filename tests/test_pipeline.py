"""Integration tests for the per-mode reconstruction pipelines."""

from __future__ import annotations

import math
import unittest

from disphi import (
    AnalysisConfig,
    ConfigurationError,
    DetectedParticle,
    Event,
    PhiEventReconstructor,
    ReconstructionMode,
    steps_for_mode,
)
from disphi.physics import build_four_vector, invariant_mass, missing_four_vector
from disphi.pid import ELECTRON_MASS, KAON_MASS, PROTON_MASS
from disphi.pipeline import missing_kplus_aliases_step

BEAM_ENERGY = 10.6
ELECTRON = (0.1, 0.2, 9.0)
PROTON = (0.3, -0.1, 1.0)
K_PLUS = (0.05, 0.05, 0.5)
K_MINUS = (-0.2, 0.1, 0.7)


def _event(event_id: str, *particles: tuple) -> Event:
    """Build an event from `(pid, (px, py, pz), status)` tuples."""
    return Event(
        event_id=event_id,
        particles=tuple(
            DetectedParticle(pid=pid, px=p[0], py=p[1], pz=p[2], status=status)
            for pid, p, status in particles
        ),
    )


def _reconstructor(mode: str) -> PhiEventReconstructor:
    return PhiEventReconstructor(AnalysisConfig(beam_energy=BEAM_ENERGY, mode=mode))


class TestMissingKMinusMode(unittest.TestCase):
    """e, p and K+ detected; the K- comes from four-momentum conservation."""

    def setUp(self) -> None:
        self.event = _event(
            "evt0",
            (11, ELECTRON, 1100),
            (2212, PROTON, 4100),
            (321, K_PLUS, 2100),
        )
        self.record = _reconstructor("missing-km").reconstruct(self.event)

    def test_reconstructed_k_minus_momentum(self) -> None:
        """Beam along z minus the detected momenta."""
        self.assertIsNotNone(self.record)
        expected = (-0.45, -0.15, 0.1)
        got = (
            self.record["kMinus_miss_px"],
            self.record["kMinus_miss_py"],
            self.record["kMinus_miss_pz"],
        )
        for g, e in zip(got, expected):
            self.assertAlmostEqual(g, e, delta=1e-6)
        self.assertAlmostEqual(self.record["reckMinus_p"], math.sqrt(0.235), places=9)

    def test_k_minus_missing_mass_matches_missing_vector(self) -> None:
        detected = (
            build_four_vector(*ELECTRON, ELECTRON_MASS),
            build_four_vector(*PROTON, PROTON_MASS),
            build_four_vector(*K_PLUS, KAON_MASS),
        )
        expected = missing_four_vector(BEAM_ENERGY, detected).mass2
        self.assertAlmostEqual(self.record["Mx2_epKp"], expected, places=9)

    def test_kaon_pair_mass_uses_reconstructed_kaon(self) -> None:
        kp = build_four_vector(*K_PLUS, KAON_MASS)
        km = build_four_vector(
            self.record["kMinus_miss_px"],
            self.record["kMinus_miss_py"],
            self.record["kMinus_miss_pz"],
            KAON_MASS,
        )
        self.assertAlmostEqual(self.record["invMass_KpKm"], invariant_mass(kp, km), places=12)

    def test_mode_specific_columns(self) -> None:
        """No detected K- columns, no detector regions, no K+ mass aliases."""
        self.assertEqual(self.record.mode, "missing-km")
        self.assertIn("kPlus_px", self.record)
        self.assertIn("Q2", self.record)
        self.assertNotIn("kMinus_px", self.record)
        self.assertNotIn("ele_det_region", self.record)
        self.assertNotIn("Mx_epKm_forCut", self.record)

    def test_output_is_finite(self) -> None:
        for key, value in self.record.columns.items():
            self.assertTrue(math.isfinite(value), msg=key)


class TestAllDetectedMode(unittest.TestCase):
    """All four final-state particles are taken from detection."""

    def setUp(self) -> None:
        self.reconstructor = _reconstructor("all-detected")

    def test_full_event_columns(self) -> None:
        event = _event(
            "evt1",
            (11, ELECTRON, 1100),
            (-321, K_MINUS, 0),
            (321, K_PLUS, 2100),
            (2212, PROTON, -4100),
        )
        record = self.reconstructor.reconstruct(event)
        self.assertIsNotNone(record)
        self.assertEqual(record["ele_det_region"], 0)
        self.assertEqual(record["kPlus_det_region"], 1)
        self.assertEqual(record["pro_det_region"], 2)
        self.assertEqual(record["kMinus_det_region"], -1)
        expected_mass = invariant_mass(
            build_four_vector(*K_PLUS, KAON_MASS), build_four_vector(*K_MINUS, KAON_MASS)
        )
        self.assertAlmostEqual(record["invMass_KpKm"], expected_mass, places=12)
        self.assertEqual(
            (record["kMinus_px"], record["kMinus_py"], record["kMinus_pz"]), K_MINUS
        )
        self.assertNotIn("kMinus_miss_px", record)

    def test_event_without_k_minus_is_rejected(self) -> None:
        """A sentinel momentum in any selected slot drops the event."""
        event = _event("evt2", (11, ELECTRON, 0), (2212, PROTON, 0), (321, K_PLUS, 0))
        self.assertIsNone(self.reconstructor.reconstruct(event))
        records = self.reconstructor.reconstruct_events([event], apply_topology=False)
        self.assertEqual(records, [])


class TestMissingKPlusMode(unittest.TestCase):
    """e, p and K- detected; K+ mass-window aliases are attached."""

    def _record(self, electron: tuple[float, float, float]):
        event = _event(
            "evt3",
            (11, electron, 0),
            (2212, PROTON, 0),
            (-321, (0.05, 0.05, 0.5), 0),
        )
        record = _reconstructor("missing-kp").reconstruct(event)
        self.assertIsNotNone(record)
        return record

    def test_positive_missing_mass_alias(self) -> None:
        record = self._record((0.1, 0.2, 5.0))
        self.assertGreater(record["Mx2_epKm"], 0.0)
        self.assertEqual(record["Mx2_epKm_forCut"], record["Mx2_epKm"])
        self.assertAlmostEqual(record["Mx_epKm_forCut"] ** 2, record["Mx2_epKm"], places=9)
        self.assertIn("kPlus_miss_px", record)

    def test_negative_missing_mass_alias_is_sentinel(self) -> None:
        record = self._record(ELECTRON)
        self.assertLess(record["Mx2_epKm"], 0.0)
        self.assertEqual(record["Mx2_epKm_forCut"], record["Mx2_epKm"])
        self.assertEqual(record["Mx_epKm_forCut"], -999.0)

    def test_alias_boundary_at_zero(self) -> None:
        """A missing mass squared of exactly zero has no mass: the alias is the sentinel."""
        step = missing_kplus_aliases_step()
        event = Event(event_id="evt4", particles=())
        at_zero = step(event, {"Mx2_epKm": 0.0}, BEAM_ENERGY)
        just_above = step(event, {"Mx2_epKm": 1e-12}, BEAM_ENERGY)
        self.assertEqual(at_zero, {"Mx2_epKm_forCut": 0.0, "Mx_epKm_forCut": -999.0})
        self.assertAlmostEqual(just_above["Mx_epKm_forCut"], 1e-6, places=12)


class TestEventFiltering(unittest.TestCase):
    """Topology and pi0 filter stages in front of reconstruction."""

    def setUp(self) -> None:
        self.good = _event(
            "good", (11, ELECTRON, 0), (2212, PROTON, 0), (321, K_PLUS, 0)
        )
        self.no_electron = _event("no_electron", (2212, PROTON, 0), (321, K_PLUS, 0))
        self.reconstructor = _reconstructor("missing-km")

    def test_topology_drops_events_and_keeps_order(self) -> None:
        records = self.reconstructor.reconstruct_events([self.no_electron, self.good])
        self.assertEqual([r.event_id for r in records], ["good"])

    def test_without_topology_sentinel_inputs_still_produce_finite_rows(self) -> None:
        records = self.reconstructor.reconstruct_events(
            [self.good, self.no_electron], apply_topology=False
        )
        self.assertEqual([r.event_id for r in records], ["good", "no_electron"])
        sentinel_row = records[1]
        self.assertEqual(sentinel_row["ele_px"], -999.0)
        for key, value in sentinel_row.columns.items():
            self.assertTrue(math.isfinite(value), msg=key)

    def test_pi0_rejection_stage(self) -> None:
        """Without a photon the pi0 rejection vetoes the event."""
        records = self.reconstructor.reconstruct_events([self.good], reject_pi0=True)
        self.assertEqual(records, [])
        self.assertIsNone(self.reconstructor.event_filter(apply_topology=False))
        self.assertTrue(self.reconstructor.select(self.no_electron, apply_topology=False))

    def test_pass_counts_are_logged(self) -> None:
        with self.assertLogs("disphi.pipeline", level="INFO") as logs:
            self.reconstructor.reconstruct_events([self.good, self.no_electron])
        joined = "\n".join(logs.output)
        self.assertIn("1/2 events passed", joined)
        self.assertIn("1/1 events reconstructed", joined)


class TestConfiguration(unittest.TestCase):
    """Run configuration is validated before any event is touched."""

    def test_invalid_beam_energy(self) -> None:
        for value in (0.0, -1.0, float("nan"), float("inf"), "abc", None):
            with self.assertRaises(ConfigurationError, msg=repr(value)):
                AnalysisConfig(beam_energy=value)

    def test_configuration_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            AnalysisConfig(beam_energy=-5.0)

    def test_mode_names_and_aliases(self) -> None:
        self.assertIs(AnalysisConfig(10.6, "MISSING_KM").mode, ReconstructionMode.MISSING_KM)
        self.assertIs(AnalysisConfig(10.6, "exclusive-kp").mode, ReconstructionMode.MISSING_KM)
        self.assertIs(AnalysisConfig(10.6, "exclusive-km").mode, ReconstructionMode.MISSING_KP)
        self.assertEqual(AnalysisConfig("10.6").beam_energy, 10.6)
        with self.assertRaises(ConfigurationError):
            AnalysisConfig(10.6, "missing-pi")

    def test_steps_per_mode(self) -> None:
        names = [step.name for step in steps_for_mode("all-detected")]
        self.assertEqual(
            names,
            [
                "select_ele",
                "select_kMinus",
                "select_kPlus",
                "select_pro",
                "require_detected",
                "spherical_kinematics",
                "detector_regions",
                "kaon_pair_mass",
                "observables",
            ],
        )
        self.assertIn("reconstruct_kMinus_miss", [s.name for s in steps_for_mode("missing-km")])
        self.assertEqual(steps_for_mode("missing-kp")[-1].name, "missing_kplus_aliases")


if __name__ == "__main__":
    unittest.main()
