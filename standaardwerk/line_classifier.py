"""
Line classifier for step-program listings.

Every line is classified exactly once into a LineCategory, with the fields
the state machine needs extracted alongside. Patterns are tried in a fixed
order and the first match wins, which keeps ambiguous lines deterministic.
"""

import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .models import StepKind, VariableKind
from .preprocessor import compile_header_patterns, is_bare_header
from .syntax_rules import SyntaxRules, DEFAULT_SYNTAX_RULES

logger = logging.getLogger(__name__)


class LineCategory(Enum):
    """Categories a listing line can fall into."""
    BLANK = "blank"
    COMMENT = "comment"
    PROGRAM_HEADER = "program_header"
    IDB_DECLARATION = "idb_declaration"
    IDLE_HEADER = "idle_header"
    STEP_HEADER = "step_header"
    END_HEADER = "end_header"
    VARIABLE_DECLARATION = "variable_declaration"
    OR_BLOCK_OPEN = "or_block_open"
    OR_BLOCK_CLOSE = "or_block_close"
    CONDITION = "condition"
    UNRECOGNIZED = "unrecognized"


HEADER_CATEGORIES = {
    LineCategory.IDLE_HEADER: StepKind.IDLE,
    LineCategory.STEP_HEADER: StepKind.STEP,
    LineCategory.END_HEADER: StepKind.END,
}


@dataclass
class ClassifiedLine:
    """A classified line and the fields extracted from it."""
    category: LineCategory
    line_number: int
    text: str
    indented: bool = False
    keyword: Optional[str] = None
    number: Optional[int] = None
    description: Optional[str] = None
    name: Optional[str] = None
    value: Optional[str] = None
    function_block: Optional[str] = None
    program_type: Optional[str] = None
    variable_kind: Optional[VariableKind] = None
    comment: Optional[str] = None
    opens_comment_block: bool = False
    warning: Optional[str] = None

    @property
    def step_kind(self) -> Optional[StepKind]:
        return HEADER_CATEGORIES.get(self.category)


class LineClassifier:
    """Classifies single listing lines against the syntax rules."""

    def __init__(self, syntax_rules: SyntaxRules = DEFAULT_SYNTAX_RULES):
        syntax_rules.validate()
        self.rules = syntax_rules

        step = syntax_rules.keyword_pattern("step")
        program_type = syntax_rules.keyword_pattern("program_type")
        negation = syntax_rules.keyword_pattern("negation")
        idb = "(?:" + "|".join(re.escape(p) for p in syntax_rules.idb_prefixes) + ")"

        self.header_patterns = compile_header_patterns(syntax_rules)
        self.patterns = {
            # [Hauptprogramm] Sortentrennung FB12 [page]
            "program_header": re.compile(
                rf"^(?:(?P<program_type>{program_type})\s+)?(?P<name>.+?)\s+"
                rf"(?P<fb>(?:FB|FC)\s?\d+)(?:\s+\d+)?$",
                re.IGNORECASE,
            ),
            "idb": re.compile(rf"^{idb}\s*:\s*(?P<name>.*)$", re.IGNORECASE),
            # Keyword in header position with a number that does not parse
            "malformed_step": re.compile(
                rf"^(?P<keyword>{step})\b\s*-?\s*(?P<number>[^\s:(]*)\s*[:(]",
                re.IGNORECASE,
            ),
            "variable": re.compile(r"^(?P<lhs>[^=<>!]*[^=<>!\s])\s*=(?!=)\s*(?P<value>.*)$"),
            "described_name": re.compile(r"^(?P<name>.+?)\s*\((?P<description>[^()]*)\)$"),
            "negated": re.compile(rf"^{negation}\s", re.IGNORECASE),
        }
        if syntax_rules.comment_prefix:
            # Motor.Running // laeuft
            self.patterns["inline_comment"] = re.compile(
                rf"(?:^|\s+){re.escape(syntax_rules.comment_prefix)}\s*(?P<comment>.*)$"
            )
        if syntax_rules.block_comment_open:
            self.patterns["block_comment"] = re.compile(
                rf"{re.escape(syntax_rules.block_comment_open)}\s*(?P<comment>.*?)\s*"
                rf"{re.escape(syntax_rules.block_comment_close)}"
            )

    def classify(
        self,
        raw_line: str,
        line_number: int,
        header_allowed: bool = False,
        program_named: bool = False,
        cursor_open: bool = False,
    ) -> ClassifiedLine:
        """
        Classify one line of (preprocessed) listing text.

        Args:
            raw_line: The line including its leading whitespace
            line_number: Source line number, carried into the result
            header_allowed: True while no step or declaration has been seen
            program_named: True once the program name is known
            cursor_open: True while a step or declaration collects conditions

        Returns:
            ClassifiedLine with exactly one category
        """
        text = raw_line.strip()
        indented = bool(raw_line) and raw_line[0] in " \t"
        comment = None

        def result(category: LineCategory, **fields) -> ClassifiedLine:
            fields.setdefault("comment", comment)
            return ClassifiedLine(category, line_number, text, indented, **fields)

        if not text:
            return result(LineCategory.BLANK)

        if self.rules.comment_prefix and text.startswith(self.rules.comment_prefix):
            return result(LineCategory.COMMENT, description=text[len(self.rules.comment_prefix):].strip())

        opener = self.rules.block_comment_open
        if opener and text.startswith(opener) and self.rules.block_comment_close not in text:
            return result(LineCategory.COMMENT, description=text[len(opener):].strip(), opens_comment_block=True)

        text, comment = self._split_comments(text)
        if not text:
            return result(LineCategory.COMMENT, description=comment or "", comment=None)

        if header_allowed and not indented:
            header = self._match_program_header(text, program_named)
            if header is not None:
                return result(LineCategory.PROGRAM_HEADER, **header)

        idb_match = self.patterns["idb"].match(text)
        if idb_match:
            return result(LineCategory.IDB_DECLARATION, name=idb_match.group("name").strip())

        warning = None
        for role, category in (
            ("idle", LineCategory.IDLE_HEADER),
            ("step", LineCategory.STEP_HEADER),
            ("end", LineCategory.END_HEADER),
        ):
            match = self.header_patterns[role].match(text)
            # An indented lone "Klaar" is condition text
            if not match or (indented and is_bare_header(match)):
                continue
            number = int(match.group("number")) if match.group("number") else 0
            if category is LineCategory.STEP_HEADER and number < 1:
                warning = f"Step number must be 1 or higher: {text}"
                break
            return result(
                category,
                keyword=match.group("keyword").upper(),
                number=number,
                description=self._header_description(match),
            )
        else:
            malformed = self.patterns["malformed_step"].match(text)
            if malformed:
                warning = f"Malformed step header, number {malformed.group('number')!r} is not an integer: {text}"

        if warning is None and not indented:
            declaration = self._match_variable(text)
            if declaration is not None:
                return result(LineCategory.VARIABLE_DECLARATION, **declaration)

        if self.rules.or_block_brackets and warning is None:
            if text == self.rules.or_block_open:
                return result(LineCategory.OR_BLOCK_OPEN)
            if text == self.rules.or_block_close:
                return result(LineCategory.OR_BLOCK_CLOSE)

        if cursor_open:
            return result(LineCategory.CONDITION, warning=warning)

        logger.debug(f"Line {line_number} not recognized: {text}")
        return result(LineCategory.UNRECOGNIZED, warning=warning)

    def _split_comments(self, text: str) -> Tuple[str, Optional[str]]:
        """Strip ``/* ... */`` and trailing ``// ...`` comments off a code line."""
        comments = []
        block = self.patterns.get("block_comment")
        if block is not None and block.search(text):
            comments.extend(match.group("comment") for match in block.finditer(text))
            text = re.sub(r"\s+", " ", block.sub(" ", text)).strip()
        inline = self.patterns.get("inline_comment")
        if inline is not None:
            match = inline.search(text)
            if match:
                comments.append(match.group("comment").strip())
                text = text[:match.start()].rstrip()
        return text, " ".join(c for c in comments if c) or None

    def _match_program_header(self, text: str, program_named: bool) -> Optional[dict]:
        if any(pattern.match(text) for pattern in self.header_patterns.values()):
            return None
        if self.patterns["idb"].match(text):
            return None

        match = self.patterns["program_header"].match(text)
        if match:
            program_type = match.group("program_type")
            return {
                "name": match.group("name").strip(),
                "function_block": re.sub(r"\s+", "", match.group("fb")).upper(),
                "program_type": program_type.strip() if program_type else None,
            }

        # A bare title line: no colon, no assignment, not a condition prefix
        if program_named or ":" in text or "=" in text:
            return None
        if text.startswith(self.rules.or_prefix) or self.patterns["negated"].match(text):
            return None
        if self.rules.or_block_brackets and text in (self.rules.or_block_open, self.rules.or_block_close):
            return None
        return {"name": text, "function_block": None, "program_type": None}

    def _match_variable(self, text: str) -> Optional[dict]:
        if text.startswith(self.rules.or_prefix) or self.patterns["negated"].match(text):
            return None

        match = self.patterns["variable"].match(text)
        if not match:
            return None

        lhs = match.group("lhs").strip()
        value = match.group("value").strip() or None
        name, description = lhs, None
        described = self.patterns["described_name"].match(lhs)
        if described:
            name = described.group("name").strip()
            description = described.group("description").strip()

        return {
            "name": name,
            "value": value,
            "description": description,
            "variable_kind": self.rules.variable_kind(name),
        }

    @staticmethod
    def _header_description(match: re.Match) -> str:
        description = (match.group("description") or "").strip()
        if match.group("sep") == "(" and description.endswith(")"):
            description = description[:-1].rstrip()
        return description
