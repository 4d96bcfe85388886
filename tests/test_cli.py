import json

import pytest

from smb_pulse import __version__
from smb_pulse.cli import main

CSV_CONTENT = (
    "Date,Product,Category,Region,Sales,Profit\n"
    '2025-01-01,Mouse,Accessories,Jakarta,"Rp 250,000","Rp 75,000"\n'
    '2025-01-02,Hub,Accessories,Bandung,"Rp 420,000","Rp 110,000"\n'
    '2025-01-03,Stand,Office,Jakarta,"Rp 380,000","Rp 95,000"\n'
    '2025-01-04,Case,Accessories,Bandung,"Rp 85,000","Rp 120,000"\n'
    "2025-01-05,Notebook,Office,,0,0\n"
)


@pytest.fixture
def csv_path(tmp_path):
    path = tmp_path / "transactions.csv"
    path.write_text(CSV_CONTENT, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    # No smb_pulse_config.toml in the working directory: built-in defaults.
    monkeypatch.chdir(tmp_path)


def test_version(capsys) -> None:
    assert main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_detect_mapping(csv_path, capsys) -> None:
    assert main(["detect-mapping", str(csv_path)]) == 0

    out = capsys.readouterr().out
    assert "revenue    Sales" in out
    assert "profit     Profit" in out
    assert "region     Region" in out
    assert "category   Category" in out


def test_validate_ok(csv_path, capsys) -> None:
    assert main(["validate", str(csv_path), "--auto-map"]) == 0
    out = capsys.readouterr().out
    assert "SMALL_DATASET" in out
    assert "Valid." in out


def test_validate_missing_column(csv_path, capsys) -> None:
    assert main(["validate", str(csv_path), "--revenue", "Omset"]) == 1
    assert "REVENUE_COLUMN_MISSING" in capsys.readouterr().out


def test_analyze_json(csv_path, capsys) -> None:
    code = main(
        [
            "analyze",
            str(csv_path),
            "--auto-map",
            "--sector",
            "Accessories",
            "--display-mode",
            "json",
            "--insights",
        ]
    )
    assert code == 0

    payload = json.loads(capsys.readouterr().out)
    metrics = payload["metrics"]
    assert metrics["totalRevenue"] == pytest.approx(1_135_000)
    assert metrics["totalProfit"] == pytest.approx(400_000)
    assert metrics["estimatedMonthlyCOGS"] == pytest.approx(454_000)
    assert metrics["transactionCount"] == 5
    assert set(metrics["byRegion"]) == {"Jakarta", "Bandung", "Unknown"}
    assert [a["row"] for a in metrics["anomalies"]] == [4, 5]
    assert payload["validation"]["isValid"] is True
    assert payload["businessProfile"]["name"] == "transactions.csv"
    assert payload["insights"]["success"] is True


def test_analyze_table_output(csv_path, capsys) -> None:
    code = main(
        ["analyze", str(csv_path), "--revenue", "Sales", "--region", "Region"]
    )
    assert code == 0

    out = capsys.readouterr().out
    assert "=== Summary ===" in out
    assert "=== By region (Region) ===" in out
    assert "=== Anomalies ===" in out
    assert "Revenue is zero or negative" in out


def test_analyze_csv_output(csv_path, tmp_path, capsys) -> None:
    out_dir = tmp_path / "out"

    code = main(
        [
            "analyze",
            str(csv_path),
            "--revenue",
            "Sales",
            "--category",
            "Category",
            "--display-mode",
            "csv",
            "--output",
            str(out_dir),
        ]
    )
    assert code == 0

    names = sorted(p.name.rsplit("_", 1)[0] for p in out_dir.glob("*.csv"))
    assert names == ["anomalies", "by_category", "summary"]


def test_analyze_without_revenue_mapping(csv_path, capsys) -> None:
    assert main(["analyze", str(csv_path), "--region", "Region"]) == 1
    assert "revenue" in capsys.readouterr().err


def test_analyze_header_only_file_is_rejected(tmp_path, capsys) -> None:
    path = tmp_path / "header_only.csv"
    path.write_text("Sales,Region\n", encoding="utf-8")

    assert main(["analyze", str(path), "--revenue", "Sales"]) == 1
    assert "no data rows" in capsys.readouterr().err


def test_analyze_header_only_file_skipping_validation(tmp_path, capsys) -> None:
    path = tmp_path / "header_only.csv"
    path.write_text("Sales,Region\n", encoding="utf-8")

    code = main(["analyze", str(path), "--revenue", "Sales", "--skip-validation"])

    assert code == 1
    assert "No data rows provided" in capsys.readouterr().err
