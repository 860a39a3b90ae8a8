"""
Tests for the command line interface.
"""

import json

from click.testing import CliRunner

from standaardwerk.cli import main

LISTING = """\
Sortentrennung FB12
RUHE: Warten
    NICHT Stoerung
SCHRITT 1: Start
    Motor.Running
SCHRITT abc: oops
"""


class TestParseCommand:
    """Test the parse command."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_parse_listing(self, tmp_path):
        listing = tmp_path / "band.txt"
        listing.write_text(LISTING, encoding="utf-8")
        output = tmp_path / "band.json"

        result = self.runner.invoke(main, ["parse", "-i", str(listing), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "Steps: 2" in result.output
        assert "[WARNING] line 6" in result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["programs"][0]["name"] == "Sortentrennung"

    def test_parse_with_rules_and_name(self, tmp_path):
        listing = tmp_path / "band.txt"
        listing.write_text("ETAPE 1: Start\n\tA\n", encoding="utf-8")
        rules = tmp_path / "rules.yaml"
        rules.write_text("syntax_rules:\n  step: [ETAPE]\n", encoding="utf-8")
        output = tmp_path / "band.json"

        result = self.runner.invoke(main, [
            "parse", "-i", str(listing), "-o", str(output),
            "--rules", str(rules), "--name", "Band", "--fb", "FB3", "--include", "steps",
        ])

        assert result.exit_code == 0, result.output
        program = json.loads(output.read_text(encoding="utf-8"))["programs"][0]
        assert program["name"] == "Band"
        assert program["function_block_id"] == "FB3"
        assert program["steps"][0]["keyword"] == "ETAPE"
        assert "variables" not in program

    def test_invalid_rules_exit_code(self, tmp_path):
        listing = tmp_path / "band.txt"
        listing.write_text(LISTING, encoding="utf-8")
        rules = tmp_path / "rules.yaml"
        rules.write_text("step: []\n", encoding="utf-8")

        result = self.runner.invoke(main, [
            "parse", "-i", str(listing), "-o", str(tmp_path / "out.json"), "-r", str(rules),
        ])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_input(self, tmp_path):
        result = self.runner.invoke(main, [
            "parse", "-i", str(tmp_path / "missing.txt"), "-o", str(tmp_path / "out.json"),
        ])
        assert result.exit_code == 1


class TestDocumentCommand:
    """Test the document command."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_html_document(self, tmp_path):
        document = tmp_path / "doc.html"
        document.write_text(
            "<h1>Band FB1</h1><p>RUHE:</p><h1>Band FB1</h1><p>SCHRITT 1: a</p>", encoding="utf-8"
        )
        output = tmp_path / "programs.json"

        result = self.runner.invoke(main, ["document", "-i", str(document), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "Parsed 2 programs" in result.output
        assert "Duplicate function block FB1" in result.output
        assert len(json.loads(output.read_text(encoding="utf-8"))["programs"]) == 2

    def test_json_blocks(self, tmp_path):
        document = tmp_path / "blocks.json"
        document.write_text(json.dumps([
            {"type": "h1", "content": "Band FB1"},
            {"type": "p", "content": "RUHE: Warten"},
        ]), encoding="utf-8")
        output = tmp_path / "programs.json"

        result = self.runner.invoke(main, ["document", "-i", str(document), "-o", str(output)])

        assert result.exit_code == 0, result.output
        program = json.loads(output.read_text(encoding="utf-8"))["programs"][0]
        assert program["idb_name"] == "Band"
        assert program["steps"][0]["kind"] == "IDLE"
