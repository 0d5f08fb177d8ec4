#!/usr/bin/env python3
"""Dataset generation script for performance testing.

Generates a synthetic DataStream-style CSV export:
- Header row with MonitoringLocationID, MonitoringLocationName,
  CharacteristicName, ResultValue plus a few pass-through columns
- One reading per row, spread over ``--locations`` monitoring locations
- Roughly 60% of rows are "Temperature, water", the rest other characteristics
- ``--bad-values`` mixes in unparseable ResultValues (blank, "n/a")

Large outputs (>= 5 MiB by default) exercise the worker-process decoder.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

CHARACTERISTICS = ["Temperature, water", "pH", "Dissolved oxygen (DO)", "Specific conductance"]
CHARACTERISTIC_WEIGHTS = [0.6, 0.15, 0.15, 0.1]


def generate_readings(
    rows: int, locations: int, seed: int = 42, bad_values: float = 0.0
) -> pd.DataFrame:
    """Generate a DataFrame of synthetic readings.

    Args:
        rows: Number of data rows
        locations: Number of distinct monitoring locations
        seed: Random seed for reproducible data
        bad_values: Fraction of rows whose ResultValue is not a number

    Returns:
        DataFrame with DataStream column names, all values as strings
    """
    rng = np.random.default_rng(seed)

    loc_idx = rng.integers(0, locations, rows)
    characteristic = rng.choice(CHARACTERISTICS, rows, p=CHARACTERISTIC_WEIGHTS)
    values = np.round(rng.normal(14.0, 6.0, rows), 2).astype(str)
    if bad_values > 0:
        mask = rng.random(rows) < bad_values
        values[mask] = rng.choice(["", "n/a"], int(mask.sum()))

    dates = pd.date_range("2023-01-01", "2024-12-31", periods=365)
    return pd.DataFrame(
        {
            "DatasetName": "Synthetic Watershed Monitoring",
            "MonitoringLocationID": [f"LOC{i:04d}" for i in loc_idx],
            "MonitoringLocationName": [f"Station {i}" for i in loc_idx],
            "ActivityStartDate": rng.choice(dates, rows).astype("datetime64[D]").astype(str),
            "CharacteristicName": characteristic,
            "ResultValue": values,
            "ResultUnit": np.where(characteristic == "Temperature, water", "deg C", ""),
        }
    )


def write_csv(
    output_path: Path, rows: int, locations: int, seed: int = 42, bad_values: float = 0.0
) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = generate_readings(rows, locations, seed, bad_values)
    df.to_csv(output_path, index=False)

    size = output_path.stat().st_size
    print(f"Created CSV file: {output_path}")
    print(f"  Rows: {rows:,}")
    print(f"  Locations: {locations}")
    print(f"  Size: {size:,} bytes")


def main() -> int:
    """Main CLI interface for dataset generation."""
    parser = argparse.ArgumentParser(
        description="Generate synthetic DataStream CSV exports for performance testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate default 200k rows over 50 locations
  %(prog)s output.csv

  # Larger file with some unparseable values
  %(prog)s large.csv --rows 1000000 --locations 500 --bad-values 0.02
        """
    )
    parser.add_argument("output", type=Path, help="Output CSV file path")
    parser.add_argument(
        "--rows", type=int, default=200_000, help="Number of data rows (default: 200,000)"
    )
    parser.add_argument(
        "--locations", type=int, default=50, help="Number of monitoring locations (default: 50)"
    )
    parser.add_argument(
        "--bad-values",
        type=float,
        default=0.0,
        help="Fraction of rows with unparseable ResultValue (default: 0)",
    )
    parser.add_argument(
        "--seed", type=int, default=42, help="Random seed for reproducible data (default: 42)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be generated without creating files",
    )
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.locations <= 0:
        print("Error: --locations must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.bad_values < 1.0:
        print("Error: --bad-values must be in [0, 1)", file=sys.stderr)
        return 1

    if args.dry_run:
        print(f"Would create: {args.output}")
        print(f"  Rows: {args.rows:,}, locations: {args.locations}, bad values: {args.bad_values}")
        return 0

    write_csv(args.output, args.rows, args.locations, args.seed, args.bad_values)
    return 0


if __name__ == "__main__":
    sys.exit(main())
