"""
Tests for listing text normalization.
"""

import pytest

from standaardwerk.preprocessor import Preprocessor


class TestPreprocessor:
    """Test the Preprocessor class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.preprocessor = Preprocessor()

    @pytest.mark.parametrize("raw, expected", [
        ("SCHRITT 3 (Band starten)", "SCHRITT 3: Band starten"),
        ("Schritt-3 :Band starten", "SCHRITT 3: Band starten"),
        ("stap 3:   Band   starten", "STAP 3: Band starten"),
        ("   STEP 3: Band starten", "STEP 3: Band starten"),
        ("RUHE (Warten)", "RUHE: Warten"),
        ("Rust", "RUST:"),
        ("klaar 9: Fertig", "KLAAR 9: Fertig"),
    ])
    def test_header_shapes(self, raw, expected):
        """Test every accepted header shape becomes canonical."""
        assert self.preprocessor.normalize(raw) == expected

    def test_step_without_separator_untouched(self):
        """Test a step keyword and number without separator is not a header."""
        assert self.preprocessor.normalize("    SCHRITT 4") == "    SCHRITT 4"

    def test_condition_indentation_preserved(self):
        """Test leading whitespace survives while inner runs collapse."""
        assert self.preprocessor.normalize("\t  Motor.Running   und   bereit  ") == "\t  Motor.Running und bereit"

    def test_line_endings_and_nbsp(self):
        """Test CRLF and non-breaking spaces are normalized."""
        text = "RUHE:\u00a0Warten\r\n\tNICHT\u00a0Stoerung\rSCHRITT 1: Start"
        assert self.preprocessor.normalize(text) == "RUHE: Warten\n\tNICHT Stoerung\nSCHRITT 1: Start"

    def test_embedded_header_split(self):
        """Test a header following other text moves onto its own line."""
        result = self.preprocessor.normalize("\tMotor.Running SCHRITT 2: Weiter")
        assert result == "\tMotor.Running\nSCHRITT 2: Weiter"

    @pytest.mark.parametrize("line", [
        "SCHRITT 1: Warten bis Band fertig: ja",
        "\tProduct klaar: ok",
        "\tEinlauf Ruhe: aus",
    ])
    def test_idle_and_end_words_inside_text_untouched(self, line):
        """Test idle/end keywords after other text are ordinary words."""
        assert self.preprocessor.normalize(line) == line

    def test_indented_bare_keyword_untouched(self):
        """Test a lone idle/end keyword on an indented line stays condition text."""
        assert self.preprocessor.normalize("\tKlaar") == "\tKlaar"
        assert self.preprocessor.normalize("Klaar") == "KLAAR:"

    def test_keyword_in_parentheses_untouched(self):
        """Test cross-reference clauses are never split."""
        line = "\tFreigabe (Einlauf SCHRITT 5: aktiv)"
        assert self.preprocessor.normalize(line) == line

    def test_normalize_lines_keeps_source_numbers(self):
        """Test split lines keep the number of the line they came from."""
        lines = self.preprocessor.normalize_lines("A SCHRITT 1: x\n\tB")
        assert lines == [(1, "A"), (1, "SCHRITT 1: x"), (2, "\tB")]

    def test_idb_line_normalized(self):
        """Test IDB declarations get a single canonical separator."""
        assert self.preprocessor.normalize("Symbolik IDB :  Band_IDB") == "Symbolik IDB: Band_IDB"

    def test_empty_input(self):
        """Test empty input yields empty output."""
        assert self.preprocessor.normalize("") == ""

    def test_idempotent(self):
        """Test normalizing twice changes nothing."""
        text = (
            "Sortentrennung FB12\r\n"
            "RUHE (Warten)\n"
            "   NICHT  Stoerung SCHRITT 1 : Start\n"
            "\t+ Handbetrieb (Einlauf SCHRITT 3+4)\n"
            "Schritt-2 (Sortieren (links))\n"
            "FERTIG\n"
        )
        once = self.preprocessor.normalize(text)
        assert self.preprocessor.normalize(once) == once
