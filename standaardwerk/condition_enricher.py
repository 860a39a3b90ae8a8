"""
Condition enrichment.

A condition line can carry several facets at once: an OR prefix, a negation
keyword, a cross-reference to a step of another program, a timer and a
comparison. Each facet is detected by its own rule against the same text, so
none of them excludes another.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import (
    Comparison, ComparisonOperator, Condition, FaultRef, MarkerRef,
    Reference, TimerRef,
)
from .syntax_rules import SyntaxRules, DEFAULT_SYNTAX_RULES

logger = logging.getLogger(__name__)

IDLE_STEP = 0


@dataclass
class EnrichmentResult:
    """Enriched condition plus any non-fatal problems found on the way."""
    condition: Condition
    warnings: List[str] = field(default_factory=list)


def parse_step_list(text: str) -> Tuple[List[int], List[str]]:
    """
    Split a step list such as ``5+6`` or ``2-4`` into step numbers.

    Entries are joined by ``+``; an entry ``a-b`` with a <= b expands to the
    inclusive range.

    Returns:
        Tuple of (step numbers in source order, entries that did not parse)
    """
    steps: List[int] = []
    invalid: List[str] = []
    for entry in text.split("+"):
        entry = entry.strip()
        if not entry:
            continue
        if entry.isdigit():
            steps.append(int(entry))
            continue
        span = re.match(r"^(\d+)\s*-\s*(\d+)$", entry)
        if span and int(span.group(1)) <= int(span.group(2)):
            steps.extend(range(int(span.group(1)), int(span.group(2)) + 1))
            continue
        invalid.append(entry)
    return steps, invalid


class ConditionEnricher:
    """Extracts the logical facets of a condition line."""

    def __init__(self, syntax_rules: SyntaxRules = DEFAULT_SYNTAX_RULES):
        self.rules = syntax_rules
        step = syntax_rules.keyword_pattern("step")
        negation = syntax_rules.keyword_pattern("negation")
        from_ = syntax_rules.keyword_pattern("from")
        idle = syntax_rules.keyword_pattern("idle")
        timer = syntax_rules.keyword_pattern("timer")
        marker = syntax_rules.keyword_pattern("marker")
        fault = syntax_rules.keyword_pattern("fault")

        self.patterns = {
            "negation": re.compile(rf"^(?P<keyword>{negation})\s+(?P<rest>.+)$", re.IGNORECASE),
            # Foo (Sortentrennung SCHRITT 5+6)
            "cross_reference": re.compile(
                rf"\((?:(?P<context>[^()]*?)\s+)?(?P<keyword>{step})\s+(?P<steps>\d[^()]*?)\s*\)",
                re.IGNORECASE,
            ),
            # Einlauf bereit (Einlauf FB10 RUHE)
            "idle_reference": re.compile(
                rf"\((?P<context>[^()]*?\S)\s+(?P<keyword>{idle})\s*\)",
                re.IGNORECASE,
            ),
            # VON SCHRITT 3, SCHRITT 2-4
            "own_step": re.compile(
                rf"^(?:{from_}\s+)?(?P<keyword>{step})\s+(?P<steps>\d[\d\s+\-]*)$",
                re.IGNORECASE,
            ),
            "function_block": re.compile(r"^(?P<program>.*?)\s*\b(?P<fb>(?:FB|FC)\s?\d+)$", re.IGNORECASE),
            "trailing_negation": re.compile(rf"^(?P<context>.*?)\s*\b{negation}$", re.IGNORECASE),
            # TIJD ~ 5 Sek, Zeit 10 Minuten
            "timer": re.compile(
                rf"\b(?P<keyword>{timer})\s*(?:~\s*|\s+)(?P<duration>\d+)\s*(?P<unit>{syntax_rules.unit_pattern()})\b",
                re.IGNORECASE,
            ),
            "comparison": re.compile(
                r"^(?P<operand>[\w.\[\]]+(?:\s+[\w.\[\]]+)*?)\s*"
                r"(?P<operator>==|!=|<>|>=|<=|>|<)\s*(?P<value>.+)$"
            ),
            "marker": re.compile(
                rf"^{marker}\s+(?P<name>[\w.\[\]]+)\s*=?\s*(?P<value>.*)$",
                re.IGNORECASE,
            ),
            "fault": re.compile(
                rf"^{fault}\s+(?P<name>[\w.\[\]\-]+)\s*[:=]?\s*(?P<description>.*)$",
                re.IGNORECASE,
            ),
        }

    def enrich(self, text: str, line_number: int = 0) -> EnrichmentResult:
        """
        Build a Condition from the text of one condition line.

        Args:
            text: Trimmed condition text
            line_number: Source line number

        Returns:
            EnrichmentResult holding the condition and any warnings
        """
        warnings: List[str] = []
        text = text.strip()

        is_or = text.startswith(self.rules.or_prefix)
        if is_or:
            text = text[len(self.rules.or_prefix):].strip()

        negated = False
        negation_match = self.patterns["negation"].match(text)
        if negation_match:
            negated = True
            text = negation_match.group("rest").strip()

        condition = Condition(
            text=text,
            line_number=line_number,
            negated=negated,
            is_or_alternative=is_or,
        )

        reference, reference_negated, remainder = self._detect_reference(text, line_number, warnings)
        if reference is not None:
            condition.cross_reference = reference
            condition.negated = condition.negated or reference_negated

        condition.timer = self._detect_timer(text, line_number)
        condition.is_time_condition = condition.timer is not None

        condition.comparison = self._detect_comparison(remainder)

        logger.debug(
            f"Line {line_number}: or={condition.is_or_alternative} not={condition.negated} "
            f"ref={reference is not None} time={condition.is_time_condition} "
            f"cmp={condition.comparison is not None} text={text!r}"
        )
        return EnrichmentResult(condition=condition, warnings=warnings)

    def _detect_reference(
        self, text: str, line_number: int, warnings: List[str]
    ) -> Tuple[Optional[Reference], bool, str]:
        """Return (reference, negated inside the clause, text without the clause)."""
        match = self.patterns["cross_reference"].search(text)
        if match:
            steps = self._steps(match.group("steps"), line_number, warnings)
            return self._clause_reference(text, match, steps, line_number)

        # The idle state is step 0
        match = self.patterns["idle_reference"].search(text)
        if match:
            return self._clause_reference(text, match, [IDLE_STEP], line_number)

        match = self.patterns["own_step"].match(text)
        if match:
            steps = self._steps(match.group("steps"), line_number, warnings)
            reference = Reference(
                description=text,
                target_program=None,
                target_steps=steps,
                line_number=line_number,
            )
            return reference, False, ""

        return None, False, text

    def _clause_reference(
        self, text: str, match: re.Match, steps: List[int], line_number: int
    ) -> Tuple[Reference, bool, str]:
        context = (match.group("context") or "").strip()
        negated = False
        trailing = self.patterns["trailing_negation"].match(context)
        if trailing:
            negated = True
            context = trailing.group("context").strip()

        program, function_block = context, None
        fb_match = self.patterns["function_block"].match(context)
        if fb_match:
            program = fb_match.group("program").strip()
            function_block = re.sub(r"\s+", "", fb_match.group("fb")).upper()

        remainder = re.sub(r"\s+", " ", text[:match.start()] + " " + text[match.end():]).strip()
        reference = Reference(
            description=remainder or context,
            target_program=program or function_block or None,
            target_steps=steps,
            function_block=function_block,
            line_number=line_number,
        )
        return reference, negated, remainder

    def _steps(self, text: str, line_number: int, warnings: List[str]) -> List[int]:
        steps, invalid = parse_step_list(text)
        for entry in invalid:
            warnings.append(f"Cross-reference step {entry!r} is not a step number, ignored")
        if invalid:
            logger.warning(f"Line {line_number}: unparsable cross-reference steps {invalid}")
        return steps

    def _detect_timer(self, text: str, line_number: int) -> Optional[TimerRef]:
        match = self.patterns["timer"].search(text)
        if not match:
            return None
        return TimerRef(
            duration=int(match.group("duration")),
            unit=self.rules.canonical_unit(match.group("unit")),
            text=match.group(0),
            line_number=line_number,
        )

    def _detect_comparison(self, text: str) -> Optional[Comparison]:
        if not text:
            return None
        match = self.patterns["comparison"].match(text)
        if not match:
            return None
        value = match.group("value").strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        return Comparison(
            operand=match.group("operand").strip(),
            operator=ComparisonOperator.from_symbol(match.group("operator")),
            value=value,
        )

    def marker_ref(self, text: str, line_number: int = 0) -> Optional[MarkerRef]:
        """Recognise an in-step marker line such as ``MERKER M1 = 1``."""
        match = self.patterns["marker"].match(text.strip())
        if not match:
            return None
        return MarkerRef(
            name=match.group("name"),
            value=match.group("value").strip(),
            line_number=line_number,
        )

    def fault_ref(self, text: str, line_number: int = 0) -> Optional[FaultRef]:
        """Recognise an in-step fault line such as ``STORING 23 = Klep vast``."""
        match = self.patterns["fault"].match(text.strip())
        if not match:
            return None
        return FaultRef(
            name=match.group("name"),
            description=match.group("description").strip(),
            line_number=line_number,
        )
