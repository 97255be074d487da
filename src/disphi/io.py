"""Input/output helpers for event inputs and tabular result export."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from .models import DetectedParticle, Event, ReconstructedEvent
from .pid import species_from_name

_PARTICLE_COLUMNS = ("pid", "px", "py", "pz")


def load_events_json(path: str | Path) -> list[Event]:
    """Load multi-event input JSON into `Event` objects.

    Each event either lists particle objects or carries parallel arrays:
    {
      "events": [
        {"event_id": "...", "particles": [{"pid": 11, "px": ..., ...}, ...]},
        {"event_id": "...", "pid": [...], "px": [...], "py": [...], "pz": [...],
         "pass": [...], "daughter_pass": [...], "status": [...]},
        ...
      ]
    }
    """
    data = _load_json(path)
    events_data = data.get("events")
    if not isinstance(events_data, list):
        raise ValueError("Events JSON must contain a list under key 'events'.")
    out: list[Event] = []
    for idx, event in enumerate(events_data):
        if not isinstance(event, dict):
            raise ValueError(f"Event entry at index {idx} must be an object.")
        event_id = str(event.get("event_id", f"evt{idx}"))
        if "particles" in event:
            particles_data = event["particles"]
            if not isinstance(particles_data, list):
                raise ValueError(f"Event '{event_id}' key 'particles' must be a list.")
            particles = tuple(
                _parse_particle_item(item=item, idx=pidx, context=f"event '{event_id}'")
                for pidx, item in enumerate(particles_data)
            )
            out.append(Event(event_id=event_id, particles=particles))
        else:
            out.append(_parse_columnar_event(event, event_id))
    return out


def load_particles_table(path: str | Path) -> list[Event]:
    """Load a one-row-per-particle table (.parquet/.csv/.pkl) into events.

    Required columns: `event_id`, `pid`, `px`, `py`, `pz`. Optional flag
    columns `pass`, `daughter_pass` and `status` default to true/false/0.
    Events and particles keep their order of appearance in the file.
    """
    pd = _require_pandas()
    src = Path(path)
    suffix = src.suffix.lower()
    if suffix == ".parquet":
        df = pd.read_parquet(src)
    elif suffix in (".pkl", ".pickle"):
        df = pd.read_pickle(src)
    elif suffix == ".csv":
        df = pd.read_csv(src)
    else:
        raise ValueError(
            f"Unsupported input format '{suffix}'. Use .parquet, .csv, or .pkl"
        )
    missing = [c for c in ("event_id", *_PARTICLE_COLUMNS) if c not in df.columns]
    if missing:
        raise ValueError(f"Particle table {path} is missing columns: {', '.join(missing)}")

    out: list[Event] = []
    for event_id, group in df.groupby("event_id", sort=False):
        out.append(
            Event.from_columns(
                event_id=str(event_id),
                pid=group["pid"].tolist(),
                px=group["px"].tolist(),
                py=group["py"].tolist(),
                pz=group["pz"].tolist(),
                passes=group["pass"].tolist() if "pass" in group else None,
                daughter_pass=group["daughter_pass"].tolist() if "daughter_pass" in group else None,
                status=group["status"].tolist() if "status" in group else None,
            )
        )
    return out


def write_results_table(path: str | Path, records: Sequence[ReconstructedEvent]) -> None:
    """Write reconstructed events into Parquet/CSV/Pickle table."""
    pd = _require_pandas()
    df = pd.DataFrame(_result_rows(records))
    out = Path(path)
    suffix = out.suffix.lower()
    if suffix == ".parquet":
        df.to_parquet(out, index=False)
    elif suffix in (".pkl", ".pickle"):
        df.to_pickle(out)
    elif suffix == ".csv":
        df.to_csv(out, index=False)
    else:
        raise ValueError(
            f"Unsupported output format '{suffix}'. Use .parquet, .csv, or .pkl"
        )


def _result_rows(records: Sequence[ReconstructedEvent]) -> list[dict[str, Any]]:
    """Flatten reconstructed events into DataFrame-ready row dictionaries."""
    rows: list[dict[str, Any]] = []
    for rec in records:
        row: dict[str, Any] = {"event_id": rec.event_id, "mode": rec.mode}
        row.update(rec.columns)
        rows.append(row)
    return rows


def _require_pandas():
    """Import pandas lazily and provide a clear installation hint on failure."""
    try:
        import pandas as pd  # type: ignore
    except ModuleNotFoundError as exc:
        raise ModuleNotFoundError(
            "pandas is required to read and write tables. Install pandas and pyarrow."
        ) from exc
    return pd


def _parse_pid(value: Any) -> int:
    """Accept a PDG integer or a species name such as `"K+"`."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("+-").isdigit():
            return int(stripped)
        return species_from_name(stripped).pdg_id
    if isinstance(value, bool):
        raise ValueError(f"Particle id must be an integer or species name, got {value!r}.")
    return int(value)


def _parse_flag(value: Any, key: str, context: str) -> bool:
    """Accept a JSON boolean (or 0/1) for a selection flag."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueError(f"Flag '{key}' in {context} must be a boolean, got {value!r}.")


def _parse_flag_array(values: Any, key: str, event_id: str) -> list[bool] | None:
    """Validate an optional per-particle flag array."""
    if values is None:
        return None
    if not isinstance(values, list):
        raise ValueError(f"Event '{event_id}' key '{key}' must be a list.")
    return [_parse_flag(v, key, f"event '{event_id}'") for v in values]


def _parse_particle_item(item: Any, idx: int, context: str) -> DetectedParticle:
    """Parse one particle dictionary into a `DetectedParticle`."""
    if not isinstance(item, dict):
        raise ValueError(f"Particle entry at index {idx} in {context} must be an object.")
    missing = [k for k in _PARTICLE_COLUMNS if k not in item]
    if missing:
        raise ValueError(
            f"Particle at index {idx} in {context} is missing fields: {', '.join(missing)}"
        )
    return DetectedParticle(
        pid=_parse_pid(item["pid"]),
        px=float(item["px"]),
        py=float(item["py"]),
        pz=float(item["pz"]),
        passes=_parse_flag(item.get("pass", True), "pass", context),
        daughter_pass=_parse_flag(item.get("daughter_pass", False), "daughter_pass", context),
        status=int(item.get("status", 0)),
    )


def _parse_columnar_event(event: dict[str, Any], event_id: str) -> Event:
    """Parse an event given as parallel per-particle arrays."""
    for key in _PARTICLE_COLUMNS:
        if not isinstance(event.get(key), list):
            raise ValueError(
                f"Event '{event_id}' must contain a 'particles' list or a '{key}' array."
            )
    return Event.from_columns(
        event_id=event_id,
        pid=[_parse_pid(v) for v in event["pid"]],
        px=event["px"],
        py=event["py"],
        pz=event["pz"],
        passes=_parse_flag_array(event.get("pass"), "pass", event_id),
        daughter_pass=_parse_flag_array(event.get("daughter_pass"), "daughter_pass", event_id),
        status=event.get("status"),
    )


def _load_json(path: str | Path) -> dict[str, Any]:
    """Read and validate a JSON object document from disk."""
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"JSON document at {path} must be an object.")
    return data
