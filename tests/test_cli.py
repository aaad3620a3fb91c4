from __future__ import annotations

import json
from pathlib import Path

import pytest
from propfolio.cli import main

EXAMPLES = Path(__file__).resolve().parents[1] / "examples" / "ledgers"
LEDGER = str(EXAMPLES / "ledger.yaml")
CONFIG = str(EXAMPLES / "report.yaml")


def run(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    out, err = capsys.readouterr()
    return excinfo.value.code, out, err


def test_report_json(capsys):
    code, out, _ = run(["report", LEDGER, "--window", "all", "--now", "2026-04-15", "--json"], capsys)
    data = json.loads(out)

    assert code == 0
    assert data["group_by"] == "property"
    assert [row["entity_name"] for row in data["rows"]] == ["Altbau Mitte", "Lindenhof 4", "General"]
    assert data["rows"][1]["roi"] is None
    assert data["total_entities"] == 3


def test_report_table(capsys):
    code, out, _ = run(["report", LEDGER, "--window", "2026", "--group-by", "month"], capsys)

    assert code == 0
    assert out.startswith("Month report | 2026")
    assert "Showing 12 of 12 months" in out


def test_report_with_config_file(capsys):
    code, out, _ = run(["report", LEDGER, "-c", CONFIG, "--now", "2026-04-15", "--json"], capsys)
    data = json.loads(out)

    assert code == 0
    assert data["group_by"] == "category"
    assert data["sort"] == {"field": "share_percent", "direction": "desc"}
    assert data["rows"][0]["entity_name"] == "Maintenance"


def test_report_cli_flags_override_config(capsys):
    code, out, _ = run(
        ["report", LEDGER, "-c", CONFIG, "--group-by", "property", "--sort", "profit", "--json"],
        capsys,
    )
    assert code == 0
    assert json.loads(out)["group_by"] == "property"


def test_report_empty(capsys):
    code, out, _ = run(["report", LEDGER, "--window", "2019"], capsys)

    assert code == 0
    assert "No transactions match the selected filters." in out


@pytest.mark.parametrize(
    "extra",
    [
        ["--window", "fortnight"],
        ["--group-by", "category", "--sort", "roi"],
    ],
)
def test_report_errors(capsys, extra):
    code, _, err = run(["report", LEDGER, *extra], capsys)
    assert code == 1
    assert err.startswith("Error:")


def test_missing_ledger(capsys, tmp_path: Path):
    code, _, err = run(["report", str(tmp_path / "missing.yaml")], capsys)
    assert code == 1
    assert "missing.yaml" in err


def test_overview_json(capsys):
    code, out, _ = run(["overview", LEDGER, "--now", "2026-02-15", "--json"], capsys)
    data = json.loads(out)

    assert code == 0
    assert data["property_count"] == 2
    assert [t["id"] for t in data["upcoming"]] == [107, 108]


def test_overview_text(capsys):
    code, out, _ = run(["overview", LEDGER, "--now", "2026-02-15"], capsys)
    assert code == 0
    assert "Upcoming recurring:" in out


def test_tax_year(capsys):
    code, out, _ = run(["tax-year", LEDGER, "--year", "2026", "--rate", "0.3", "--property", "2", "--json"], capsys)
    data = json.loads(out)

    assert code == 0
    assert data["net_income"] == 860.0
    assert data["estimated_tax"] == 258.0


def test_tax_year_invalid_rate(capsys):
    code, _, err = run(["tax-year", LEDGER, "--year", "2026", "--rate", "3"], capsys)
    assert code == 1
    assert "tax_rate" in err


@pytest.mark.parametrize("rate", ["abc", "nan", "inf"])
def test_tax_year_non_numeric_rate(capsys, rate):
    code, out, err = run(["tax-year", LEDGER, "--year", "2026", "--rate", rate], capsys)
    assert code == 1
    assert out == ""
    assert err.startswith("Error:")
    assert "tax_rate" in err


@pytest.mark.parametrize("command", [["report", LEDGER], ["overview", LEDGER]])
def test_unparsable_now(capsys, command):
    code, _, err = run([*command, "--now", "yesterday"], capsys)
    assert code == 1
    assert err.startswith("Error:")
    assert "yesterday" in err


def test_validate(capsys, tmp_path: Path):
    code, out, _ = run(["validate", LEDGER], capsys)
    assert code == 0
    assert out.strip() == "OK: 8 transaction(s), 2 properties"

    bad = tmp_path / "bad.yaml"
    bad.write_text("transactions:\n  - {id: 1, date: 2026-01-01, type: income, amount: -3}\n")
    code, _, err = run(["validate", str(bad)], capsys)
    assert code == 1
    assert err.startswith("Validation failed: [Transaction 1]")
