from pathlib import Path
import sys

import pytest

# Ensure src root (where reconcile.py lives) is on PYTHONPATH
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from reconcile import (  # noqa: E402
    Coordinates,
    MasterRecord,
    MissingParty,
    SalesRecord,
    build_report,
    cell_text,
    extract_coordinates,
    find_missing,
    find_name_collisions,
    master_from_rows,
    merge_missing,
    normalize_name,
    report_summary,
    sales_from_rows,
)


# ---------- normalize_name ----------

@pytest.mark.parametrize("raw", [" Acme ", "ACME", "acme", "\tAcMe\n"])
def test_normalize_name_trims_and_lowercases(raw):
    assert normalize_name(raw) == "acme"


@pytest.mark.parametrize("raw", ["", "   ", None])
def test_normalize_name_blank_is_empty_key(raw):
    assert normalize_name(raw) == ""


@pytest.mark.parametrize("raw", [" Acme Co ", "ACME  co", "", "  Beta LLC"])
def test_normalize_name_is_idempotent(raw):
    once = normalize_name(raw)
    assert normalize_name(once) == once


# ---------- extract_coordinates ----------

def test_extract_coordinates_space_separated():
    assert extract_coordinates("Main St, City (31.5 74.2)") == Coordinates("31.5", "74.2")


def test_extract_coordinates_comma_separated_keeps_precision():
    coords = extract_coordinates("Shop 4, 31.650000, 74.8900")
    assert coords.lat == "31.650000"
    assert coords.lng == "74.8900"


def test_extract_coordinates_signs_are_independent():
    assert extract_coordinates("-31.5, 74.2") == Coordinates("-31.5", "74.2")
    assert extract_coordinates("31.5 -74.2") == Coordinates("31.5", "-74.2")


def test_extract_coordinates_uses_first_two_numbers():
    assert extract_coordinates("1.5 2.5 3.5") == Coordinates("1.5", "2.5")


def test_extract_coordinates_accepts_out_of_range_values():
    assert extract_coordinates("999.1,-500.2") == Coordinates("999.1", "-500.2")


@pytest.mark.parametrize("address", ["31.5", "", None, "12 Elm St", "31 74", "Block 31.5 and 74", "٣١.٥ ٧٤.٢"])
def test_extract_coordinates_no_pair_is_empty(address):
    coords = extract_coordinates(address)
    assert coords == Coordinates("", "")
    assert not coords


# ---------- find_missing ----------

def test_find_missing_dedupes_and_keeps_first_spelling():
    master = [MasterRecord("Acme Co", "111", "12 Elm St")]
    sales = [
        SalesRecord("Gamma Ltd", "555"),
        SalesRecord("acme co", "222"),
        SalesRecord(" GAMMA LTD ", "999"),
        SalesRecord("Beta LLC", ""),
    ]

    missing = find_missing(master, sales)

    assert missing == [
        MissingParty("Gamma Ltd", "555", ""),
        MissingParty("Beta LLC", "", ""),
    ]


def test_find_missing_properties_hold():
    master = [MasterRecord("A"), MasterRecord("b "), MasterRecord("C")]
    sales = [SalesRecord(n) for n in ["a", "D", "d", " e", "B", "E ", "f", "c"]]

    missing = find_missing(master, sales)
    keys = [normalize_name(p.name) for p in missing]
    master_keys = {normalize_name(m.party_name) for m in master}

    assert len(keys) == len(set(keys))
    assert not set(keys) & master_keys
    assert set(keys) == {normalize_name(s.party_name) for s in sales} - master_keys


def test_find_missing_empty_sales():
    assert find_missing([MasterRecord("Acme")], []) == []


def test_find_missing_empty_master_returns_every_distinct_party():
    sales = [SalesRecord("X", "1"), SalesRecord("x", "2"), SalesRecord("Y", "3")]
    assert find_missing([], sales) == [MissingParty("X", "1", ""), MissingParty("Y", "3", "")]


def test_find_missing_blank_name_is_a_valid_key():
    sales = [SalesRecord("", "1"), SalesRecord("  ", "2")]
    assert find_missing([], sales) == [MissingParty("", "1", "")]
    assert find_missing([MasterRecord(" ")], sales) == []


# ---------- merge_missing ----------

def test_merge_missing_appends_in_order_without_mutating():
    master = [MasterRecord("Acme Co", "111", "12 Elm St")]
    confirmed = [MissingParty("Beta LLC", "333", "5 Oak Ave"), MissingParty("Gamma", "", "")]

    merged = merge_missing(master, confirmed)

    assert len(merged) == len(master) + len(confirmed)
    assert merged[0] is master[0]
    assert merged[1:] == [MasterRecord("Beta LLC", "333", "5 Oak Ave"), MasterRecord("Gamma", "", "")]
    assert len(master) == 1


def test_merge_missing_keeps_collisions_and_they_are_reported():
    master = [MasterRecord("Acme Co")]
    confirmed = [MissingParty("ACME CO", "1", ""), MissingParty("Beta", "", ""), MissingParty("beta", "", "")]

    merged = merge_missing(master, confirmed)

    assert len(merged) == 4
    assert find_name_collisions(master, confirmed) == [confirmed[0], confirmed[2]]


# ---------- build_report ----------

def test_build_report_one_row_per_sale_in_order():
    master = [MasterRecord("Acme", "111", "x (1.0 2.0)")]
    sales = [SalesRecord("acme"), SalesRecord("Nobody", "9"), SalesRecord("ACME ", "7")]

    rows = build_report(master, sales)

    assert len(rows) == len(sales)
    assert [r.name for r in rows] == [s.party_name for s in sales]
    assert rows[0].phone == "111"
    assert rows[1].address == "" and rows[1].latitude == "" and rows[1].phone == "9"
    assert rows[2].phone == "7"
    assert all(r.group == "" and r.notes == "" for r in rows)


def test_build_report_duplicate_master_key_last_wins():
    master = [MasterRecord("Acme", "1", "first"), MasterRecord("ACME", "2", "second")]
    rows = build_report(master, [SalesRecord("acme")])
    assert rows[0].address == "second"
    assert rows[0].phone == "2"


def test_end_to_end_scenario():
    master = master_from_rows([{"Party Name": "Acme Co", "Number": "111", "Address": "12 Elm St"}])
    sales = sales_from_rows(
        [
            {"Party Name": "acme co ", "Phone No.": "222"},
            {"Party Name": "Beta LLC", "Phone No.": "333"},
        ]
    )

    missing = find_missing(master, sales)
    assert missing == [MissingParty(name="Beta LLC", phone="333", address="")]

    missing[0].address = "5 Oak Ave (30.0 70.0)"
    merged = merge_missing(master, missing)
    rows = build_report(merged, sales)

    assert rows[0].as_row() == {
        "Name": "acme co ",
        "Latitude": "",
        "Longitude": "",
        "Address": "12 Elm St",
        "Phone": "222",
        "Group": "",
        "Notes": "",
    }
    assert rows[1].name == "Beta LLC"
    assert rows[1].address == "5 Oak Ave (30.0 70.0)"
    assert rows[1].phone == "333"
    assert (rows[1].latitude, rows[1].longitude) == ("30.0", "70.0")

    assert report_summary(rows) == {"rows": 2, "with_address": 2, "with_coordinates": 1}


# ---------- row conversion ----------

def test_cell_text_handles_spreadsheet_values():
    assert cell_text(None) == ""
    assert cell_text(float("nan")) == ""
    assert cell_text(3001234567.0) == "3001234567"
    assert cell_text(31.5) == "31.5"
    assert cell_text(42) == "42"


def test_records_from_rows_tolerate_missing_cells():
    master = master_from_rows([{"Party Name": "Acme"}])
    sales = sales_from_rows([{"Party Name": "Acme", "Phone No.": None}])
    assert master == [MasterRecord("Acme", "", "")]
    assert sales == [SalesRecord("Acme", "")]
