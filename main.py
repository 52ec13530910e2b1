# main.py

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import argparse
import json
import sys

from reconcile import (
    build_report,
    find_missing,
    find_name_collisions,
    merge_missing,
    report_summary,
)
from tabular import (
    DEFAULT_REPORT_FILE,
    ReportWriteError,
    TabularReadError,
    read_master,
    read_missing_parties,
    read_sales,
    write_missing_parties,
    write_report,
)


# =========================
# CONFIGURATION SECTION
# =========================

PROJECT_ROOT = Path(__file__).resolve().parent

DATA_OUT = Path("data") / "processed"
REPORT_FILE = DEFAULT_REPORT_FILE
MISSING_FILE = "missing_parties.xlsx"

CONFIG_PATH = PROJECT_ROOT / "config" / "route_report.json"

DEFAULT_CONFIG = {
    "output_dir": str(DATA_OUT),
    "report_file": REPORT_FILE,
    "missing_file": MISSING_FILE,
}


def load_config(path: Optional[Path] = None) -> dict:
    """
    Load the JSON config, layered over DEFAULT_CONFIG.

    A missing file is not an error: defaults are used.
    """
    cfg = dict(DEFAULT_CONFIG)
    path = Path(path) if path else CONFIG_PATH
    if not path.exists():
        print(f"[INFO] No config file found at {path}; using defaults.")
        return cfg
    with open(path, "r", encoding="utf-8") as f:
        loaded = json.load(f)
    cfg.update({k: v for k, v in loaded.items() if k in DEFAULT_CONFIG})
    return cfg


@dataclass
class RunSummary:
    master_rows: int
    sales_rows: int
    missing_parties: int
    merged_parties: int
    report_rows: int
    rows_with_address: int
    rows_with_coordinates: int
    report_path: Optional[Path] = None
    missing_path: Optional[Path] = None


# =========================
# PIPELINE
# =========================

def run_missing_step(
    master_file: Path,
    sales_file: Path,
    output_dir: Path,
    missing_file: str = MISSING_FILE,
) -> RunSummary:
    """
    First half of a batch run: write the parties that are in sales but not
    in master to a review sheet the operator fills in (phone, address).
    """
    master = read_master(master_file)
    sales = read_sales(sales_file)
    missing = find_missing(master, sales)

    missing_path = write_missing_parties(missing, Path(output_dir) / missing_file)

    print(f"Master rows:      {len(master)}")
    print(f"Sales rows:       {len(sales)}")
    print(f"Missing parties:  {len(missing)}")
    print(f"\nReview sheet written to: {missing_path}")
    print("Fill in Phone No. / Address, then run the `report` command with --missing.")

    return RunSummary(
        master_rows=len(master),
        sales_rows=len(sales),
        missing_parties=len(missing),
        merged_parties=0,
        report_rows=0,
        rows_with_address=0,
        rows_with_coordinates=0,
        missing_path=missing_path,
    )


def run_route_report(
    master_file: Path,
    sales_file: Path,
    output_dir: Path,
    missing_file: Optional[Path] = None,
    report_file: str = REPORT_FILE,
) -> RunSummary:
    """
    Full batch run: reconcile, merge the missing parties, write the report.

    With `missing_file` the operator-reviewed sheet is merged; without it the
    detected parties are merged as-is (empty address).
    """
    master = read_master(master_file)
    sales = read_sales(sales_file)
    detected = find_missing(master, sales)

    if missing_file is not None:
        confirmed = read_missing_parties(missing_file)
    else:
        confirmed = detected

    for party in find_name_collisions(master, confirmed):
        print(f"[WARN] Missing party {party.name!r} matches an existing master name; it will be duplicated.")

    merged = merge_missing(master, confirmed)
    rows = build_report(merged, sales)
    counts = report_summary(rows)

    report_path = write_report(rows, Path(output_dir), report_file)

    print("==============================")
    print("  ROUTE REPORT SUMMARY")
    print("==============================")
    print(f"Master rows:              {len(master)}")
    print(f"Sales rows:               {len(sales)}")
    print(f"Missing parties detected: {len(detected)}")
    print(f"Parties merged:           {len(confirmed)}")
    print(f"Report rows:              {counts['rows']}")
    print(f"Rows with address:        {counts['with_address']}")
    print(f"Rows with coordinates:    {counts['with_coordinates']}")
    print(f"\nRoute report written to: {report_path}")

    return RunSummary(
        master_rows=len(master),
        sales_rows=len(sales),
        missing_parties=len(detected),
        merged_parties=len(confirmed),
        report_rows=counts["rows"],
        rows_with_address=counts["with_address"],
        rows_with_coordinates=counts["with_coordinates"],
        report_path=report_path,
    )


# =========================
# CLI
# =========================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconcile a master party list against sales and build the route report"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (
        ("missing", "Write the parties missing from master to a review sheet"),
        ("report", "Merge missing parties and write the route report"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("--master", type=Path, required=True, help="Master file (CSV or Excel).")
        sub.add_argument("--sales", type=Path, required=True, help="Sales file (CSV or Excel).")
        sub.add_argument("--output-dir", type=Path, default=None, help="Output directory.")
        sub.add_argument("--config", type=Path, default=None, help="JSON config file.")
        if command == "report":
            sub.add_argument(
                "--missing",
                type=Path,
                default=None,
                help="Operator-reviewed missing parties sheet from the `missing` command.",
            )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = load_config(args.config)
    output_dir = args.output_dir or Path(cfg["output_dir"])

    try:
        if args.command == "missing":
            run_missing_step(
                master_file=args.master,
                sales_file=args.sales,
                output_dir=output_dir,
                missing_file=cfg["missing_file"],
            )
        else:
            run_route_report(
                master_file=args.master,
                sales_file=args.sales,
                output_dir=output_dir,
                missing_file=args.missing,
                report_file=cfg["report_file"],
            )
    except (TabularReadError, ReportWriteError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
