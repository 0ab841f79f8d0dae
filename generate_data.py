# generate_data.py
import argparse
from pathlib import Path

from agriconnect.generate_data import write_market_csv

# Setup argument parser
parser = argparse.ArgumentParser(description="Generate dummy market item data.")
parser.add_argument("--rows", type=int, default=100, help="Number of rows to generate")
parser.add_argument("--output", type=Path, default=Path("dummy_market_items.csv"), help="CSV file to write")
args = parser.parse_args()

output_file = write_market_csv(args.output, args.rows)
print(f"Wrote {args.rows} market items to {output_file}")
