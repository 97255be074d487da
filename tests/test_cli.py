"""End-to-end tests for the command-line entrypoint."""

from __future__ import annotations

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from disphi.cli import main

EVENTS = {
    "events": [
        {
            "event_id": "evt0",
            "particles": [
                {"pid": "e-", "px": 0.1, "py": 0.2, "pz": 9.0},
                {"pid": "p", "px": 0.3, "py": -0.1, "pz": 1.0},
                {"pid": "K+", "px": 0.05, "py": 0.05, "pz": 0.5},
            ],
        },
        {
            "event_id": "evt1",
            "particles": [
                {"pid": "p", "px": 0.3, "py": -0.1, "pz": 1.0},
                {"pid": "K+", "px": 0.05, "py": 0.05, "pz": 0.5},
            ],
        },
    ]
}

SCRIPT = '''
import json
from pathlib import Path


def process(records, context):
    out = Path(context["output_path"]).with_name("summary.json")
    out.write_text(
        json.dumps({"n": len(records), "mode": context["mode"], "ids": [r.event_id for r in records]}),
        encoding="utf-8",
    )
'''


class TestCommandLine(unittest.TestCase):
    """Run the CLI against temporary inputs."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)
        self.events_path = self.tmpdir / "events.json"
        self.events_path.write_text(json.dumps(EVENTS), encoding="utf-8")
        self.out_path = self.tmpdir / "out.csv"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _argv(self, *extra: str) -> list[str]:
        return [
            "--events",
            str(self.events_path),
            "--beam-energy",
            "10.6",
            "--out",
            str(self.out_path),
            "--log-level",
            "WARNING",
            *extra,
        ]

    def test_missing_km_run_writes_selected_events(self) -> None:
        self.assertEqual(main(self._argv("--mode", "missing-km")), 0)
        df = pd.read_csv(self.out_path)
        self.assertEqual(df["event_id"].tolist(), ["evt0"])
        self.assertEqual(df["mode"].tolist(), ["missing-km"])
        self.assertAlmostEqual(df["kMinus_miss_px"].iloc[0], -0.45, delta=1e-6)
        self.assertIn("Q2", df.columns)

    def test_no_topology_keeps_every_event(self) -> None:
        main(self._argv("--mode", "exclusive-kp", "--no-topology"))
        df = pd.read_csv(self.out_path)
        self.assertEqual(df["event_id"].tolist(), ["evt0", "evt1"])
        self.assertEqual(df["ele_px"].iloc[1], -999.0)

    def test_invalid_configuration_exits_before_processing(self) -> None:
        argv = self._argv()
        argv[argv.index("10.6")] = "-1"
        for bad in (argv, self._argv("--mode", "missing-pion")):
            with contextlib.redirect_stderr(io.StringIO()):
                with self.assertRaises(SystemExit) as ctx:
                    main(bad)
            self.assertEqual(ctx.exception.code, 2)
        self.assertFalse(self.out_path.exists())

    def test_custom_script_receives_records_and_context(self) -> None:
        script = self.tmpdir / "summary_script.py"
        script.write_text(SCRIPT, encoding="utf-8")
        main(self._argv("--mode", "missing-km", "--custom-script", str(script)))
        summary = json.loads((self.tmpdir / "summary.json").read_text(encoding="utf-8"))
        self.assertEqual(summary, {"n": 1, "mode": "missing-km", "ids": ["evt0"]})


if __name__ == "__main__":
    unittest.main()
