"""
Syntax rules for step-program listings.

Maps each keyword role (step, idle, end, timer, marker, fault, ...) to the
literal spellings used in the German, Dutch and English variants of the
listing language. Rules are plain data: loaded once, shared read-only by
every parser instance.
"""

import re
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import yaml
from ordered_set import OrderedSet

from .errors import SyntaxRulesError
from .models import VariableKind

logger = logging.getLogger(__name__)

# Roles the line classifier cannot work without
REQUIRED_ROLES = ("step", "idle", "end")

KEYWORD_ROLES = (
    "step", "idle", "end", "timer", "marker", "fault",
    "negation", "from", "program_type",
)

DEFAULT_KEYWORDS: Dict[str, tuple] = {
    "step": ("STAP", "SCHRITT", "STEP"),
    "idle": ("RUST", "RUHE", "IDLE"),
    "end": ("KLAAR", "FERTIG", "END"),
    "timer": ("TIJD", "TIME", "ZEIT"),
    "marker": ("MARKER", "FLAG", "MERKER"),
    "fault": ("STORING", "FAULT", "STÖRUNG"),
    "negation": ("NIET", "NICHT", "NOT"),
    "from": ("VON", "VAN", "FROM"),
    "program_type": (
        "Hauptprogramm", "Unterprogramm", "Programm",
        "Hoofdprogramma", "Subprogramma", "Programma",
        "Main program", "Subprogram", "Program",
    ),
}

DEFAULT_TIME_UNITS: Dict[str, str] = {
    "Sekunden": "s",
    "Seconden": "s",
    "Seconds": "s",
    "Sek": "s",
    "Sec": "s",
    "s": "s",
    "Minuten": "min",
    "Minutes": "min",
    "Min": "min",
    "m": "min",
}


def _keyword_set(spellings: Iterable[str]) -> OrderedSet:
    """Build an ordered, case-insensitively unique set of spellings."""
    seen = set()
    result = OrderedSet()
    for spelling in spellings:
        spelling = str(spelling).strip()
        if not spelling or spelling.casefold() in seen:
            continue
        seen.add(spelling.casefold())
        result.add(spelling)
    return result


def _default_keywords(role: str):
    return lambda: _keyword_set(DEFAULT_KEYWORDS[role])


@dataclass(frozen=True)
class SyntaxRules:
    """Keyword spellings and fixed tokens of the listing language."""
    step: OrderedSet = field(default_factory=_default_keywords("step"))
    idle: OrderedSet = field(default_factory=_default_keywords("idle"))
    end: OrderedSet = field(default_factory=_default_keywords("end"))
    timer: OrderedSet = field(default_factory=_default_keywords("timer"))
    marker: OrderedSet = field(default_factory=_default_keywords("marker"))
    fault: OrderedSet = field(default_factory=_default_keywords("fault"))
    negation: OrderedSet = field(default_factory=_default_keywords("negation"))
    program_type: OrderedSet = field(default_factory=_default_keywords("program_type"))
    from_: OrderedSet = field(default_factory=_default_keywords("from"))
    or_prefix: str = "+"
    comment_prefix: str = "//"
    block_comment_open: str = "/*"
    block_comment_close: str = "*/"
    or_block_brackets: bool = True
    or_block_open: str = "["
    or_block_close: str = "]"
    idb_prefixes: OrderedSet = field(
        default_factory=lambda: _keyword_set(("Symbolik IDB", "Symbool IDB", "Symbol IDB"))
    )
    time_units: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(DEFAULT_TIME_UNITS)))

    def __post_init__(self):
        # Shared by every parser, so the unit table is read-only
        if not isinstance(self.time_units, MappingProxyType):
            object.__setattr__(self, "time_units", MappingProxyType(dict(self.time_units)))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SyntaxRules":
        """
        Build rules from a (partial) mapping, falling back to the defaults.

        Keyword roles may be given at the top level or below a ``keywords``
        key. A role explicitly set to an empty list stays empty, so that
        ``validate`` can reject it.
        """
        data = dict(data or {})
        keywords = dict(data.pop("keywords", {}) or {})
        for role in KEYWORD_ROLES:
            if role in data:
                keywords[role] = data.pop(role)

        kwargs: Dict[str, Any] = {}
        for role, spellings in keywords.items():
            if role not in KEYWORD_ROLES:
                raise SyntaxRulesError(f"Unknown keyword role: {role}")
            if isinstance(spellings, str):
                spellings = [spellings]
            attr = "from_" if role == "from" else role
            kwargs[attr] = _keyword_set(spellings or [])

        known = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key not in known:
                raise SyntaxRulesError(f"Unknown syntax rule: {key}")
            if key == "idb_prefixes":
                value = _keyword_set(value if not isinstance(value, str) else [value])
            elif key == "time_units":
                value = {**DEFAULT_TIME_UNITS, **dict(value or {})}
            kwargs[key] = value

        rules = cls(**kwargs)
        rules.validate()
        return rules

    def validate(self) -> None:
        """Raise SyntaxRulesError if a role the classifier needs is missing."""
        for role in REQUIRED_ROLES:
            if not getattr(self, role):
                raise SyntaxRulesError(f"Invalid syntax rules: '{role}' keywords are required")
        if not self.or_prefix:
            raise SyntaxRulesError("Invalid syntax rules: or_prefix must not be empty")
        if self.or_block_brackets and not (self.or_block_open and self.or_block_close):
            raise SyntaxRulesError("Invalid syntax rules: OR-block brackets enabled without delimiters")
        if bool(self.block_comment_open) != bool(self.block_comment_close):
            raise SyntaxRulesError("Invalid syntax rules: block comments need both delimiters")

    def keywords(self, role: str) -> OrderedSet:
        if role not in KEYWORD_ROLES:
            raise SyntaxRulesError(f"Unknown keyword role: {role}")
        return getattr(self, "from_" if role == "from" else role)

    def keyword_pattern(self, role: str) -> str:
        """Regex alternation (non-capturing) of every spelling of a role."""
        spellings = self.keywords(role)
        if not spellings:
            # Never matches
            return r"(?!x)x"
        return "(?:" + "|".join(re.escape(s) for s in spellings) + ")"

    def unit_pattern(self) -> str:
        # Longest first so "Sekunden" wins over "Sek" and "s"
        units = sorted(self.time_units, key=len, reverse=True)
        return "(?:" + "|".join(re.escape(u) for u in units) + ")"

    def canonical_unit(self, unit: str) -> str:
        for spelling, canonical in self.time_units.items():
            if spelling.casefold() == unit.casefold():
                return canonical
        return unit

    def variable_kind(self, name: str) -> VariableKind:
        """Infer the declaration kind from its name."""
        if not name:
            return VariableKind.VARIABLE
        lowered = name.casefold()
        if any(lowered.startswith(k.casefold()) for k in self.fault):
            return VariableKind.FAULT
        if any(k.casefold() in lowered for k in self.timer):
            return VariableKind.TIMER
        if any(k.casefold() in lowered for k in self.marker):
            return VariableKind.MARKER
        return VariableKind.VARIABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keywords": {role: list(self.keywords(role)) for role in KEYWORD_ROLES},
            "or_prefix": self.or_prefix,
            "comment_prefix": self.comment_prefix,
            "block_comment_open": self.block_comment_open,
            "block_comment_close": self.block_comment_close,
            "or_block_brackets": self.or_block_brackets,
            "or_block_open": self.or_block_open,
            "or_block_close": self.or_block_close,
            "idb_prefixes": list(self.idb_prefixes),
            "time_units": dict(self.time_units),
        }


DEFAULT_SYNTAX_RULES = SyntaxRules()


def load_syntax_rules(config_path: Union[str, Path]) -> SyntaxRules:
    """
    Load syntax rules from a YAML file.

    The file either holds the rules mapping directly or below a
    ``syntax_rules`` key. Missing entries fall back to the defaults.

    Args:
        config_path: Path to the YAML file

    Returns:
        Validated SyntaxRules

    Raises:
        SyntaxRulesError: If the file cannot be read or the rules are invalid
    """
    config_path = Path(config_path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SyntaxRulesError(f"Could not load syntax rules from {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise SyntaxRulesError(f"Syntax rules in {config_path} must be a mapping")

    rules_data = config_data.get("syntax_rules", config_data)
    rules = SyntaxRules.from_dict(rules_data)
    logger.info(f"Loaded syntax rules from {config_path}")
    return rules
