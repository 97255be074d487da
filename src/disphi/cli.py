"""Command-line interface for reconstructing phi-meson events."""

from __future__ import annotations

import argparse
import importlib.util
import logging
from pathlib import Path
from typing import Any

from .config import AnalysisConfig, ConfigurationError
from .io import load_events_json, load_particles_table, write_results_table
from .models import Event, ReconstructedEvent
from .pipeline import PhiEventReconstructor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="disphi",
        description="Reconstruct e p -> e' p' K+ K- kinematics with optional missing-kaon recovery.",
    )
    parser.add_argument(
        "--events",
        required=True,
        help="Input events: JSON with key 'events', or a per-particle table (.parquet, .csv, .pkl).",
    )
    parser.add_argument("--beam-energy", required=True, type=float, help="Beam energy in GeV.")
    parser.add_argument(
        "--mode",
        default="all-detected",
        help="Reconstruction mode: all-detected, missing-km, missing-kp "
        "(aliases: exclusive-kp, exclusive-km).",
    )
    parser.add_argument(
        "--no-topology",
        action="store_true",
        help="Do not apply the mode's topology selection before reconstruction.",
    )
    parser.add_argument(
        "--reject-pi0",
        action="store_true",
        help="Additionally apply the pi0 two-photon background rejection.",
    )
    parser.add_argument(
        "--out",
        required=True,
        help="Output table file for derived columns (.parquet, .csv, .pkl).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    parser.add_argument(
        "--custom-script",
        default=None,
        help="Path to Python file with process(records, context) function.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint: validate config, load events, reconstruct, write table."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        config = AnalysisConfig(beam_energy=args.beam_energy, mode=args.mode)
    except ConfigurationError as exc:
        parser.error(str(exc))

    events = load_events(args.events)
    logger.info(f"Loaded {len(events)} events from {args.events}")

    reconstructor = PhiEventReconstructor(config)
    records = reconstructor.reconstruct_events(
        events,
        apply_topology=not args.no_topology,
        reject_pi0=args.reject_pi0,
    )
    write_results_table(args.out, records)
    logger.info(f"Wrote {len(records)} rows to {args.out}")

    if args.custom_script:
        run_custom_script(
            script_path=args.custom_script,
            records=records,
            context={
                "events_path": args.events,
                "beam_energy": config.beam_energy,
                "mode": config.mode.value,
                "apply_topology": not args.no_topology,
                "reject_pi0": args.reject_pi0,
                "output_path": args.out,
            },
        )
    return 0


def load_events(path: str | Path) -> list[Event]:
    """Dispatch on file suffix: JSON documents or per-particle tables."""
    if Path(path).suffix.lower() == ".json":
        return load_events_json(path)
    return load_particles_table(path)


def run_custom_script(
    script_path: str, records: list[ReconstructedEvent], context: dict[str, Any]
) -> None:
    """Execute user-supplied post-processing callback `process(records, context)`."""
    module = _load_module(script_path)
    process = getattr(module, "process", None)
    if process is None or not callable(process):
        raise ValueError(
            f"Custom script {script_path} must define callable process(records, context)."
        )
    process(records, context)


def _load_module(script_path: str):
    """Import a Python module from an arbitrary file path."""
    path = Path(script_path)
    spec = importlib.util.spec_from_file_location(path.stem, path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Cannot import custom script: {script_path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


if __name__ == "__main__":
    raise SystemExit(main())
