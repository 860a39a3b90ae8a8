"""
Preprocessor for extracted listing text.

Text pasted from Word documents mixes header shapes ("SCHRITT 1 (x)",
"SCHRITT 1: x", "Schritt-1 :x"), indentation styles and non-breaking spaces.
The preprocessor rewrites every step/idle/end header into one canonical shape
on its own line so the line classifier only has to deal with one form.
"""

import re
import logging
from typing import Dict, List, Tuple

from .syntax_rules import SyntaxRules, DEFAULT_SYNTAX_RULES

logger = logging.getLogger(__name__)

_SPACE_TRANSLATION = str.maketrans({"\u00a0": " ", "\u2007": " ", "\u202f": " "})


def compile_header_patterns(syntax_rules: SyntaxRules) -> Dict[str, re.Pattern]:
    """
    Compile the step, idle and end header patterns for a set of rules.

    Headers only match from the start of a trimmed line. Step headers need a
    number and a separator: ``KEYWORD n: text``, ``KEYWORD n (text)`` or
    ``KEYWORD-n: text``. Idle and end headers take an optional number and may
    stand alone (``RUHE``), but only on an unindented line.
    """
    patterns = {}
    for role in ("step", "idle", "end"):
        keyword = syntax_rules.keyword_pattern(role)
        if role == "step":
            patterns[role] = re.compile(
                rf"^(?P<keyword>{keyword})\s*-?\s*(?P<number>\d+)"
                rf"\s*(?P<sep>[:(])\s*(?P<description>.*?)\s*$",
                re.IGNORECASE,
            )
        else:
            patterns[role] = re.compile(
                rf"^(?P<keyword>{keyword})(?:\s*-?\s*(?P<number>\d+))?"
                rf"\s*(?:(?P<sep>[:(])\s*(?P<description>.*?))?\s*$",
                re.IGNORECASE,
            )
    return patterns


def is_bare_header(match: re.Match) -> bool:
    """True for a keyword-only header such as ``RUHE`` with no number or separator."""
    return match.group("number") is None and match.group("sep") is None


class Preprocessor:
    """Normalizes raw listing text into canonical header lines."""

    def __init__(self, syntax_rules: SyntaxRules = DEFAULT_SYNTAX_RULES):
        self.rules = syntax_rules
        step = syntax_rules.keyword_pattern("step")
        idb = "(?:" + "|".join(re.escape(p) for p in syntax_rules.idb_prefixes) + ")"

        self.header_patterns = compile_header_patterns(syntax_rules)

        # A numbered step header following other text on the same line.
        # Idle and end keywords are ordinary words there ("Band fertig: ja").
        self.embedded_header = re.compile(
            rf"[ \t]+(?=\b(?:{step})[ \t]*-?[ \t]*\d+[ \t]*:)",
            re.IGNORECASE,
        )
        self.idb_line = re.compile(rf"^(?P<prefix>{idb})\s*:\s*(?P<name>.*)$", re.IGNORECASE)

    def normalize(self, text: str) -> str:
        """Return the normalized text. Applying it twice changes nothing."""
        return "\n".join(line for _, line in self.normalize_lines(text))

    def normalize_lines(self, text: str) -> List[Tuple[int, str]]:
        """
        Normalize text and keep track of where each line came from.

        Args:
            text: Raw listing text

        Returns:
            List of (source line number, normalized line) tuples. A source
            line split into several lines yields several tuples with the same
            line number.
        """
        if not text:
            return []

        text = text.replace("\r\n", "\n").replace("\r", "\n").translate(_SPACE_TRANSLATION)
        result: List[Tuple[int, str]] = []

        for line_number, line in enumerate(text.split("\n"), 1):
            line = self._collapse_whitespace(line)
            for part in self._split_embedded_headers(line):
                result.append((line_number, self._canonicalize(part)))

        return result

    def _collapse_whitespace(self, line: str) -> str:
        """Keep leading indentation, collapse inner whitespace, strip the tail."""
        content = line.lstrip(" \t")
        if not content.strip():
            return ""
        indent = line[: len(line) - len(content)]
        return indent + re.sub(r"[ \t]+", " ", content.rstrip())

    def _split_embedded_headers(self, line: str) -> List[str]:
        parts = []
        start = 0
        stripped_start = len(line) - len(line.lstrip(" \t"))
        for match in self.embedded_header.finditer(line):
            if match.start() <= stripped_start:
                continue
            before = line[start:match.start()]
            # Keywords inside a parenthesised clause are cross-references
            if line[:match.start()].count("(") > line[:match.start()].count(")"):
                continue
            if before.strip():
                parts.append(before)
                start = match.end()
        parts.append(line[start:])
        return parts

    def _canonicalize(self, line: str) -> str:
        trimmed = line.strip()
        if not trimmed:
            return ""
        indented = line[0] in " \t"

        for pattern in self.header_patterns.values():
            match = pattern.match(trimmed)
            if not match or (indented and is_bare_header(match)):
                continue
            keyword = match.group("keyword").upper()
            description = match.group("description") or ""
            if match.group("sep") == "(" and description.endswith(")"):
                description = description[:-1].rstrip()
            number = match.group("number")
            if number is not None:
                head = f"{keyword} {int(number)}:"
            else:
                head = f"{keyword}:"
            logger.debug(f"Canonical header: {trimmed!r} -> {head} {description}")
            return f"{head} {description}".rstrip()

        idb_match = self.idb_line.match(trimmed)
        if idb_match:
            return f"{idb_match.group('prefix')}: {idb_match.group('name')}".rstrip()

        return line
