"""
Tests for syntax rule configuration.
"""

import re
import tempfile
from pathlib import Path

import pytest
from ordered_set import OrderedSet

from standaardwerk.errors import ConfigurationError, SyntaxRulesError
from standaardwerk.models import VariableKind
from standaardwerk.syntax_rules import DEFAULT_SYNTAX_RULES, SyntaxRules, load_syntax_rules


class TestSyntaxRules:
    """Test the SyntaxRules data table."""

    def test_default_keywords(self):
        """Test the default dialects are all present."""
        rules = DEFAULT_SYNTAX_RULES
        assert list(rules.step) == ["STAP", "SCHRITT", "STEP"]
        assert "RUHE" in rules.idle
        assert "FERTIG" in rules.end
        assert "NICHT" in rules.negation
        assert rules.or_prefix == "+"

    def test_keyword_pattern_is_case_insensitive(self):
        """Test the keyword alternation matches any casing."""
        pattern = re.compile(DEFAULT_SYNTAX_RULES.keyword_pattern("step"), re.IGNORECASE)
        assert pattern.fullmatch("schritt")
        assert pattern.fullmatch("Stap")
        assert not pattern.fullmatch("Stapel")

    def test_empty_role_never_matches(self):
        """Test an empty optional role yields a pattern that never matches."""
        rules = SyntaxRules.from_dict({"marker": []})
        assert not re.search(rules.keyword_pattern("marker"), "MARKER x")

    def test_from_dict_overrides_role(self):
        """Test a partial mapping replaces one role and keeps the others."""
        rules = SyntaxRules.from_dict({"keywords": {"step": ["ETAPE"]}})
        assert list(rules.step) == ["ETAPE"]
        assert list(rules.idle) == list(DEFAULT_SYNTAX_RULES.idle)

    def test_spellings_deduplicated_case_insensitively(self):
        """Test duplicate spellings collapse and keep the first casing."""
        rules = SyntaxRules.from_dict({"step": ["Step", "STEP", "stap"]})
        assert isinstance(rules.step, OrderedSet)
        assert list(rules.step) == ["Step", "stap"]

    def test_missing_required_role_raises(self):
        """Test rules without step keywords are rejected."""
        with pytest.raises(SyntaxRulesError, match="step"):
            SyntaxRules.from_dict({"step": []})

    def test_empty_or_prefix_raises(self):
        """Test an empty OR prefix is rejected."""
        with pytest.raises(SyntaxRulesError):
            SyntaxRules.from_dict({"or_prefix": ""})

    def test_unknown_keys_raise(self):
        """Test unknown roles and rule names are rejected."""
        with pytest.raises(SyntaxRulesError):
            SyntaxRules.from_dict({"keywords": {"loop": ["LOOP"]}})
        with pytest.raises(SyntaxRulesError):
            SyntaxRules.from_dict({"transition_arrow": "->"})

    def test_syntax_rules_error_is_configuration_error(self):
        """Test the error hierarchy."""
        assert issubclass(SyntaxRulesError, ConfigurationError)

    def test_time_units_merge_with_defaults(self):
        """Test extra time units extend the default table."""
        rules = SyntaxRules.from_dict({"time_units": {"Sekunde": "s"}})
        assert rules.canonical_unit("sekunde") == "s"
        assert rules.canonical_unit("Minuten") == "min"

    def test_time_units_read_only(self):
        """Test the shared default unit table cannot be changed in place."""
        with pytest.raises(TypeError):
            DEFAULT_SYNTAX_RULES.time_units["Stunde"] = "h"
        rules = SyntaxRules(time_units={"Sek": "s"})
        with pytest.raises(TypeError):
            rules.time_units["Sek"] = "min"
        assert rules.to_dict()["time_units"] == {"Sek": "s"}

    def test_block_comment_needs_both_delimiters(self):
        with pytest.raises(SyntaxRulesError):
            SyntaxRules.from_dict({"block_comment_close": ""})
        rules = SyntaxRules.from_dict({"block_comment_open": "", "block_comment_close": ""})
        assert rules.block_comment_open == ""

    def test_unit_pattern_prefers_longest(self):
        """Test longer unit spellings are tried first."""
        match = re.match(DEFAULT_SYNTAX_RULES.unit_pattern(), "Sekunden")
        assert match.group(0) == "Sekunden"

    def test_variable_kind(self):
        """Test declaration kinds are inferred from the name."""
        rules = DEFAULT_SYNTAX_RULES
        assert rules.variable_kind("Storing 23") == VariableKind.FAULT
        assert rules.variable_kind("Zeit Nachlauf") == VariableKind.TIMER
        assert rules.variable_kind("Merker Voll") == VariableKind.MARKER
        assert rules.variable_kind("Freigabe") == VariableKind.VARIABLE

    def test_to_dict(self):
        """Test rules serialize to plain data."""
        data = DEFAULT_SYNTAX_RULES.to_dict()
        assert data["keywords"]["from"] == ["VON", "VAN", "FROM"]
        assert data["or_block_open"] == "["


class TestLoadSyntaxRules:
    """Test loading syntax rules from YAML files."""

    def test_load_with_root_key(self):
        """Test a file with a syntax_rules root key."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "rules.yaml"
            path.write_text("syntax_rules:\n  keywords:\n    step: [ETAPE, SCHRITT]\n", encoding="utf-8")
            rules = load_syntax_rules(path)
        assert list(rules.step) == ["ETAPE", "SCHRITT"]

    def test_load_bare_mapping(self, tmp_path):
        """Test a file holding the rules mapping directly."""
        path = tmp_path / "rules.yaml"
        path.write_text("or_prefix: '|'\nnegation: [KEIN]\n", encoding="utf-8")
        rules = load_syntax_rules(path)
        assert rules.or_prefix == "|"
        assert list(rules.negation) == ["KEIN"]

    def test_missing_file_raises(self, tmp_path):
        """Test a missing file is reported as a syntax rules error."""
        with pytest.raises(SyntaxRulesError):
            load_syntax_rules(tmp_path / "missing.yaml")

    def test_invalid_yaml_raises(self, tmp_path):
        """Test malformed YAML is reported as a syntax rules error."""
        path = tmp_path / "rules.yaml"
        path.write_text("keywords: [unclosed\n", encoding="utf-8")
        with pytest.raises(SyntaxRulesError):
            load_syntax_rules(path)

    def test_non_mapping_raises(self, tmp_path):
        """Test a YAML list is rejected."""
        path = tmp_path / "rules.yaml"
        path.write_text("- STEP\n", encoding="utf-8")
        with pytest.raises(SyntaxRulesError):
            load_syntax_rules(path)
