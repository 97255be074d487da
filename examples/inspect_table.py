"""Utility script to inspect table outputs produced by the disphi CLI."""

from __future__ import annotations

import argparse
from pathlib import Path


def _require_pandas():
    """Import pandas with an actionable error if not installed."""
    try:
        import pandas as pd  # type: ignore
    except ModuleNotFoundError as exc:
        raise ModuleNotFoundError(
            "pandas is required. Install with: pip install pandas pyarrow"
        ) from exc
    return pd


def load_table(path: str):
    """Load table data from parquet/csv/pickle into a pandas DataFrame."""
    pd = _require_pandas()
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(p)
    if suffix == ".csv":
        return pd.read_csv(p)
    if suffix in (".pkl", ".pickle"):
        return pd.read_pickle(p)
    raise ValueError("Supported input formats: .parquet, .csv, .pkl")


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint: print the first rows and per-column summary statistics."""
    parser = argparse.ArgumentParser(description="Inspect disphi output table.")
    parser.add_argument("--input", required=True, help="Path to .parquet/.csv/.pkl output.")
    parser.add_argument("--head", type=int, default=10, help="Rows to print.")
    parser.add_argument(
        "--columns",
        nargs="*",
        default=["event_id", "Q2", "xB", "t", "phi", "invMass_KpKm"],
        help="Columns to print.",
    )
    args = parser.parse_args(argv)

    df = load_table(args.input)
    columns = [c for c in args.columns if c in df.columns]
    print(df[columns].head(args.head).to_string(index=False))
    print(f"\nRows={len(df)}  Columns={len(df.columns)}")
    numeric = [c for c in columns if c != "event_id"]
    if numeric:
        print(df[numeric].describe().to_string())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
