"""Tests for the taxgrok CLI (tax and settings commands)."""

import csv
import io
import json

import pytest
from click.testing import CliRunner

from taxgrok.cli.__main__ import cli


def make_w2(doc_id, wages, federal_withheld, confidence=0.95):
    """Create a processed W-2 document."""
    return {
        "id": doc_id,
        "fileName": f"{doc_id}.pdf",
        "documentType": "W2",
        "confidence": 0.9,
        "extractedData": [
            {"fieldName": "WagesTipsAndOtherCompensation", "fieldValue": wages, "confidence": confidence},
            {"fieldName": "FederalIncomeTaxWithheld", "fieldValue": federal_withheld, "confidence": confidence},
            {"fieldName": "EmployeeName", "fieldValue": {"valueString": "Jane Doe"}, "confidence": confidence},
        ],
    }


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Empty settings directory so defaults apply."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("TAXGROK_CONFIG_PATH", str(config_dir))
    return config_dir


@pytest.fixture
def documents_file(tmp_path, isolated_config):
    path = tmp_path / "documents.json"
    path.write_text(json.dumps([make_w2("w2-acme", 60000, 5000)]))
    return path


@pytest.fixture
def runner():
    return CliRunner()


class TestTaxExtract:

    def test_json(self, runner, documents_file):
        result = runner.invoke(cli, ["tax", "extract", str(documents_file), "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["income"]["wages"] == 60000
        assert data["withholdings"]["federalTax"] == 5000
        assert data["personalInfo"]["name"] == "Jane Doe"

    def test_text(self, runner, documents_file):
        result = runner.invoke(cli, ["tax", "extract", str(documents_file)])

        assert result.exit_code == 0, result.output
        assert "EXTRACTED TAX DATA (1 documents)" in result.output
        assert "Wages" in result.output
        assert "W-2 Box 1" in result.output

    def test_documents_object_from_stdin(self, runner, isolated_config):
        payload = json.dumps({"documents": [make_w2("w2-acme", 1000, 0)]})

        result = runner.invoke(cli, ["tax", "extract", "-", "--format", "json"], input=payload)

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["income"]["wages"] == 1000

    def test_min_confidence_option(self, runner, tmp_path, isolated_config):
        path = tmp_path / "low.json"
        path.write_text(json.dumps([make_w2("w2-acme", 60000, 5000, confidence=0.4)]))

        result = runner.invoke(cli, ["tax", "extract", str(path), "--format", "json", "--min-confidence", "0.5"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["income"]["wages"] == 0

    def test_invalid_json(self, runner, tmp_path, isolated_config):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        result = runner.invoke(cli, ["tax", "extract", str(path)])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_wrong_shape(self, runner, tmp_path, isolated_config):
        path = tmp_path / "shape.json"
        path.write_text(json.dumps({"docs": []}))

        result = runner.invoke(cli, ["tax", "extract", str(path)])

        assert result.exit_code == 1
        assert "documents" in result.output


class TestTaxCalculate:

    def test_text(self, runner, documents_file):
        result = runner.invoke(cli, ["tax", "calculate", str(documents_file), "--year", "2025"])

        assert result.exit_code == 0, result.output
        assert "FEDERAL TAX CALCULATION FOR 2025 (single)" in result.output
        assert "BALANCE DUE" in result.output
        assert "71.50" in result.output
        assert "$0 - $11,925" in result.output

    def test_json(self, runner, documents_file):
        result = runner.invoke(cli, ["tax", "calculate", str(documents_file), "--year", "2025", "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["phases"]["phase5_TaxableIncome"]["taxableIncome"] == 44250
        assert data["phases"]["phase11_FinalBalance"]["balanceDue"] == 71.50
        assert data["metadata"]["filingStatus"] == "single"

    def test_csv(self, runner, documents_file):
        result = runner.invoke(cli, ["tax", "calculate", str(documents_file), "--year", "2025", "--format", "csv"])

        assert result.exit_code == 0, result.output
        rows = list(csv.reader(io.StringIO(result.output)))
        assert ["Total tax", "5071.50"] in rows

    def test_options(self, runner, documents_file):
        result = runner.invoke(cli, [
            "tax", "calculate", str(documents_file), "--year", "2025", "--format", "json",
            "-s", "married-jointly", "--itemized", "40000", "--estimated-payments", "100",
        ])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["metadata"]["filingStatus"] == "marriedFilingJointly"
        assert data["metadata"]["standardDeductionUsed"] is False
        assert data["phases"]["phase4_DeductionDetermination"]["selectedDeduction"] == 40000
        assert data["phases"]["phase11_FinalBalance"]["estimatedTaxPayments"] == 100

    def test_filing_status_from_settings(self, runner, documents_file, isolated_config):
        (isolated_config / "settings.json").write_text(json.dumps({"filing_status": "head-of-household"}))

        result = runner.invoke(cli, ["tax", "calculate", str(documents_file), "--year", "2025", "--format", "json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["metadata"]["filingStatus"] == "headOfHousehold"

    def test_tax_year_from_settings(self, runner, documents_file, isolated_config):
        (isolated_config / "settings.json").write_text(json.dumps({"tax_year": 2024}))

        result = runner.invoke(cli, ["tax", "calculate", str(documents_file), "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["metadata"]["taxYear"] == 2024
        assert data["phases"]["phase4_DeductionDetermination"]["standardDeduction"] == 14600

    def test_unknown_year(self, runner, documents_file):
        result = runner.invoke(cli, ["tax", "calculate", str(documents_file), "--year", "1999"])

        assert result.exit_code == 1
        assert "1999" in result.output

    def test_invalid_filing_status(self, runner, documents_file):
        result = runner.invoke(cli, ["tax", "calculate", str(documents_file), "-s", "married"])

        assert result.exit_code == 2


class TestOtherTaxCommands:

    def test_form1040(self, runner, documents_file):
        result = runner.invoke(cli, ["tax", "form1040", str(documents_file), "--year", "2025"])

        assert result.exit_code == 0, result.output
        form = json.loads(result.output)
        assert form["data"]["deductions"]["line_14_taxable_income"] == 44250
        assert form["data"]["refund_or_owed"]["line_37_owed"] == 71.50
        assert form["source_documents"][0]["document_id"] == "w2-acme"

    def test_brackets(self, runner, isolated_config):
        result = runner.invoke(cli, ["tax", "brackets", "100000", "--year", "2025"])

        assert result.exit_code == 0, result.output
        assert "$48,475 - $103,350" in result.output
        assert "16,914.00" in result.output

    def test_rules(self, runner, isolated_config):
        result = runner.invoke(cli, ["tax", "rules", "2025"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["single"]["standard_deduction"] == 15750

    def test_rules_lists_years(self, runner, isolated_config):
        result = runner.invoke(cli, ["tax", "rules"])

        assert result.exit_code == 0
        assert "2025" in result.output


class TestSettingsCommands:

    def test_show_defaults(self, runner, isolated_config):
        result = runner.invoke(cli, ["settings", "show"])

        assert result.exit_code == 0
        assert "No settings configured" in result.output
        assert "min_field_confidence: 0.1 (default)" in result.output

    def test_set_show_unset(self, runner, isolated_config):
        result = runner.invoke(cli, ["settings", "set", "tax_year", "2024"])
        assert result.exit_code == 0, result.output
        assert json.loads((isolated_config / "settings.json").read_text()) == {"tax_year": 2024}

        result = runner.invoke(cli, ["settings", "show"])
        assert "tax_year: 2024" in result.output

        result = runner.invoke(cli, ["settings", "unset", "tax_year"])
        assert "Cleared tax_year" in result.output

    def test_set_invalid_value(self, runner, isolated_config):
        result = runner.invoke(cli, ["settings", "set", "min_field_confidence", "2"])

        assert result.exit_code == 2

    def test_set_invalid_filing_status(self, runner, isolated_config):
        result = runner.invoke(cli, ["settings", "set", "filing_status", "married"])

        assert result.exit_code == 2

    def test_unknown_key(self, runner, isolated_config):
        result = runner.invoke(cli, ["settings", "set", "colour", "blue"])

        assert result.exit_code == 2


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "taxgrok" in result.output
