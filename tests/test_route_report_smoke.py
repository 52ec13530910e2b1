from pathlib import Path
import csv
import json
import sys

import pandas as pd

# Ensure src root (where main.py lives) is on PYTHONPATH
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from generate_synthetic_routes import generate_synthetic_routes  # noqa: E402
from main import load_config, main, run_missing_step, run_route_report  # noqa: E402


def write_csv(path: Path, rows: list[dict]) -> None:
    if not rows:
        raise ValueError("rows list is empty")
    fieldnames = list(rows[0].keys())
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


def read_report(path: Path) -> pd.DataFrame:
    return pd.read_excel(path, dtype=str).fillna("")


def make_inputs(tmp_path: Path) -> tuple[Path, Path]:
    master_csv = tmp_path / "master.csv"
    sales_csv = tmp_path / "sales.csv"
    write_csv(master_csv, [{"Party Name": "Acme Co", "Number": "111", "Address": "12 Elm St"}])
    write_csv(
        sales_csv,
        [
            {"Party Name": "acme co ", "Phone No.": "222"},
            {"Party Name": "Beta LLC", "Phone No.": "333"},
            {"Party Name": "BETA LLC", "Phone No.": ""},
        ],
    )
    return master_csv, sales_csv


def test_two_phase_batch_run(tmp_path: Path):
    """
    Missing step writes the review sheet; the operator adds an address;
    the report step merges it and extracts the coordinates.
    """
    master_csv, sales_csv = make_inputs(tmp_path)
    out_dir = tmp_path / "processed"

    first = run_missing_step(master_csv, sales_csv, out_dir)
    assert first.missing_parties == 1
    assert first.missing_path.exists()

    review = pd.read_excel(first.missing_path, dtype=str).fillna("")
    assert review["Party Name"].tolist() == ["Beta LLC"]
    review.loc[0, "Address"] = "5 Oak Ave (30.0 70.0)"
    review.to_excel(first.missing_path, index=False)

    summary = run_route_report(master_csv, sales_csv, out_dir, missing_file=first.missing_path)

    assert summary.report_rows == 3
    assert summary.rows_with_coordinates == 2
    df = read_report(summary.report_path)
    assert df["Name"].tolist() == ["acme co ", "Beta LLC", "BETA LLC"]
    assert df["Address"].tolist() == ["12 Elm St", "5 Oak Ave (30.0 70.0)", "5 Oak Ave (30.0 70.0)"]
    assert df["Phone"].tolist() == ["222", "333", "333"]
    assert df["Latitude"].tolist() == ["", "30.0", "30.0"]


def test_report_without_review_merges_detected_parties(tmp_path: Path):
    master_csv, sales_csv = make_inputs(tmp_path)

    summary = run_route_report(master_csv, sales_csv, tmp_path / "out")

    assert summary.merged_parties == 1
    assert summary.rows_with_address == 1
    assert summary.report_path.name == "Updated_Route_Report.xlsx"


def test_cli_report_exit_codes(tmp_path: Path, capsys):
    master_csv, sales_csv = make_inputs(tmp_path)
    out_dir = tmp_path / "cli_out"

    code = main(["report", "--master", str(master_csv), "--sales", str(sales_csv), "--output-dir", str(out_dir)])
    assert code == 0
    assert (out_dir / "Updated_Route_Report.xlsx").exists()

    code = main(["report", "--master", str(tmp_path / "missing.csv"), "--sales", str(sales_csv), "--output-dir", str(out_dir)])
    assert code == 1
    assert "[ERROR] Failed to read master file" in capsys.readouterr().err


def test_config_overrides_file_names(tmp_path: Path):
    cfg_path = tmp_path / "route.json"
    cfg_path.write_text(json.dumps({"report_file": "route.xlsx", "unknown_key": 1}))

    cfg = load_config(cfg_path)
    assert cfg["report_file"] == "route.xlsx"
    assert cfg["missing_file"] == "missing_parties.xlsx"
    assert "unknown_key" not in cfg

    master_csv, sales_csv = make_inputs(tmp_path)
    out_dir = tmp_path / "cfg_out"
    code = main(
        [
            "missing",
            "--master", str(master_csv),
            "--sales", str(sales_csv),
            "--output-dir", str(out_dir),
            "--config", str(cfg_path),
        ]
    )
    assert code == 0
    assert (out_dir / "missing_parties.xlsx").exists()


def test_synthetic_data_runs_end_to_end(tmp_path: Path):
    paths = generate_synthetic_routes(num_parties=20, num_sales=60, output_dir=tmp_path / "raw", seed=7)

    summary = run_route_report(paths["master"], paths["sales"], tmp_path / "out")

    assert summary.sales_rows == 60
    assert summary.report_rows == 60
    assert summary.master_rows == 20
