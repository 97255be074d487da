"""Example custom callback: keep events in the phi mass window and dump a summary."""

from __future__ import annotations

import json
from pathlib import Path

PHI_MASS = 1.019461
HALF_WINDOW = 0.02


def process(records, context):
    """Apply a K+K- mass window plus a loose missing-mass cut and write a JSON report."""
    selected = [
        r
        for r in records
        if abs(r["invMass_KpKm"] - PHI_MASS) < HALF_WINDOW and abs(r["Mx2_epKpKm"]) < 0.1
    ]
    payload = {
        "mode": context["mode"],
        "beam_energy": context["beam_energy"],
        "n_total": len(records),
        "n_selected": len(selected),
        "selected": [
            {"event_id": r.event_id, "Q2": r["Q2"], "xB": r["xB"], "t": r["t"], "phi": r["phi"]}
            for r in selected
        ],
    }
    out = Path(context["output_path"]).with_name("phi_mass_window.json")
    out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    print(f"Wrote {out}")
