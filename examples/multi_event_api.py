"""Multi-event API example: run every reconstruction mode over one input file.

Run from repository root without installation:
    PYTHONPATH=src python examples/multi_event_api.py
"""

from __future__ import annotations

import logging
from pathlib import Path

from disphi import AnalysisConfig, PhiEventReconstructor, ReconstructionMode
from disphi.io import load_events_json, write_results_table


def main() -> int:
    """Load events, reconstruct them in each mode, and write one parquet table per mode."""
    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")
    events = load_events_json("examples/events.json")
    for mode in ReconstructionMode:
        reconstructor = PhiEventReconstructor(AnalysisConfig(beam_energy=10.6, mode=mode))
        records = reconstructor.reconstruct_events(events)
        out_path = Path(f"examples/phi_{mode.value.replace('-', '_')}.parquet")
        write_results_table(out_path, records)
        print(f"{mode.value}: wrote {len(records)} events to {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
