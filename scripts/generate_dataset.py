"""
Synthetic Online Retail Dataset Generator
Writes a raw transaction snapshot the report can be run against.
"""

import argparse
from pathlib import Path

from retail_eda.data.generators import TransactionGenerator
from retail_eda.ingestion.loader import write_snapshot

DEFAULT_OUTPUT = Path(__file__).parent.parent / "data" / "raw" / "online_retail.parquet"


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic online retail snapshot")
    parser.add_argument("--invoices", type=int, default=20000, help="Number of invoices (default: 20000)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT, help="Snapshot path (.parquet, .csv, .feather, .pkl)")
    args = parser.parse_args()

    print("=" * 60)
    print("Synthetic Online Retail Dataset Generator")
    print("=" * 60 + "\n")

    print(f"Generating {args.invoices:,} invoices...")
    df = TransactionGenerator(seed=args.seed).generate(n_invoices=args.invoices)

    path = write_snapshot(df, args.output)
    size = path.stat().st_size / 1024 / 1024
    print(f"\n{path.name}: {df.height:,} rows ({size:.2f} MB)")
    print(f"Output: {path.parent}\n")


if __name__ == "__main__":
    main()
