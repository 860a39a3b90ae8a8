"""
Program model for parsed step-program listings.

These are plain dataclasses with no parsing behaviour. A ProgramModel is
assembled once per program section and owns every step, variable, condition
and reference inside it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class StepKind(Enum):
    """Kind of step header."""
    STEP = "STEP"
    IDLE = "IDLE"
    END = "END"


class Combinator(Enum):
    """How the members of a condition group combine."""
    AND = "AND"
    OR = "OR"


class VariableKind(Enum):
    """Kind of top-level declaration."""
    VARIABLE = "variable"
    TIMER = "timer"
    MARKER = "marker"
    FAULT = "fault"


class ComparisonOperator(Enum):
    """Comparison operators recognised inside condition text."""
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    @classmethod
    def from_symbol(cls, symbol: str) -> "ComparisonOperator":
        if symbol == "<>":
            return cls.NE
        return cls(symbol)


@dataclass
class Comparison:
    operand: str
    operator: ComparisonOperator
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operand": self.operand,
            "operator": self.operator.value,
            "value": self.value,
        }


@dataclass
class Reference:
    """Pointer from a condition to one or more steps of a program."""
    description: str
    target_program: Optional[str]
    target_steps: List[int] = field(default_factory=list)
    function_block: Optional[str] = None
    is_self_reference: bool = False
    line_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "target_program": self.target_program,
            "target_steps": list(self.target_steps),
            "function_block": self.function_block,
            "is_self_reference": self.is_self_reference,
            "line_number": self.line_number,
        }


@dataclass
class TimerRef:
    """Timer/duration found in condition text (e.g. ``TIJD ~ 5 Sek``)."""
    duration: int
    unit: str
    text: str
    line_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.duration,
            "unit": self.unit,
            "text": self.text,
            "line_number": self.line_number,
        }


@dataclass
class MarkerRef:
    name: str
    value: str = ""
    line_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value, "line_number": self.line_number}


@dataclass
class FaultRef:
    name: str
    description: str = ""
    line_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "line_number": self.line_number,
        }


@dataclass
class Condition:
    """A single condition line with its detected facets."""
    text: str
    line_number: int = 0
    negated: bool = False
    is_or_alternative: bool = False
    cross_reference: Optional[Reference] = None
    comparison: Optional[Comparison] = None
    is_time_condition: bool = False
    timer: Optional[TimerRef] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "line_number": self.line_number,
            "negated": self.negated,
            "is_or_alternative": self.is_or_alternative,
            "cross_reference": self.cross_reference.to_dict() if self.cross_reference else None,
            "comparison": self.comparison.to_dict() if self.comparison else None,
            "is_time_condition": self.is_time_condition,
            "timer": self.timer.to_dict() if self.timer else None,
        }


@dataclass
class ConditionGroup:
    combinator: Combinator = Combinator.AND
    conditions: List[Condition] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "combinator": self.combinator.value,
            "conditions": [c.to_dict() for c in self.conditions],
        }


@dataclass
class Step:
    """A numbered step, or the idle/end sentinel of a sequence."""
    kind: StepKind
    number: int
    description: str = ""
    line_number: int = 0
    keyword: str = ""
    condition_groups: List[ConditionGroup] = field(default_factory=list)
    timers: List[TimerRef] = field(default_factory=list)
    markers: List[MarkerRef] = field(default_factory=list)
    faults: List[FaultRef] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)

    def all_conditions(self) -> Iterator[Condition]:
        """Iterate every condition of the step in source order."""
        for group in self.condition_groups:
            yield from group.conditions

    @property
    def condition_count(self) -> int:
        return sum(len(group.conditions) for group in self.condition_groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "number": self.number,
            "description": self.description,
            "line_number": self.line_number,
            "keyword": self.keyword,
            "condition_groups": [g.to_dict() for g in self.condition_groups],
            "timers": [t.to_dict() for t in self.timers],
            "markers": [m.to_dict() for m in self.markers],
            "faults": [f.to_dict() for f in self.faults],
            "references": [r.to_dict() for r in self.references],
        }


@dataclass
class VariableDeclaration:
    """Top-level ``name = value`` declaration and the conditions below it."""
    kind: VariableKind
    name: str
    value: Optional[str] = None
    description: Optional[str] = None
    line_number: int = 0
    conditions: List[Condition] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "value": self.value,
            "description": self.description,
            "line_number": self.line_number,
            "conditions": [c.to_dict() for c in self.conditions],
            "references": [r.to_dict() for r in self.references],
        }


@dataclass
class ParseIssue:
    """Non-fatal problem found while parsing, keyed by line number."""
    line_number: int
    message: str
    text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"line_number": self.line_number, "message": self.message, "text": self.text}


@dataclass
class Comment:
    line_number: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"line_number": self.line_number, "text": self.text}


@dataclass
class ProgramStatistics:
    total_steps: int = 0
    total_conditions: int = 0
    total_variables: int = 0
    external_references: int = 0
    complexity_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_steps": self.total_steps,
            "total_conditions": self.total_conditions,
            "total_variables": self.total_variables,
            "external_references": self.external_references,
            "complexity_score": self.complexity_score,
        }


@dataclass
class ProgramModel:
    """Structured result of parsing one program listing."""
    name: str = ""
    function_block_id: str = ""
    idb_name: Optional[str] = None
    program_type: Optional[str] = None
    folder_path: List[str] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)
    variables: List[VariableDeclaration] = field(default_factory=list)
    timers: List[VariableDeclaration] = field(default_factory=list)
    markers: List[VariableDeclaration] = field(default_factory=list)
    faults: List[VariableDeclaration] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    statistics: ProgramStatistics = field(default_factory=ProgramStatistics)
    errors: List[ParseIssue] = field(default_factory=list)
    warnings: List[ParseIssue] = field(default_factory=list)

    def declarations(self) -> List[VariableDeclaration]:
        """All declarations of every kind, in source order."""
        every = self.variables + self.timers + self.markers + self.faults
        return sorted(every, key=lambda declaration: declaration.line_number)

    def recompute_statistics(self) -> ProgramStatistics:
        from .statistics import compute_statistics

        self.statistics = compute_statistics(self)
        return self.statistics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "function_block_id": self.function_block_id,
            "idb_name": self.idb_name,
            "program_type": self.program_type,
            "folder_path": list(self.folder_path),
            "steps": [s.to_dict() for s in self.steps],
            "variables": [v.to_dict() for v in self.variables],
            "timers": [t.to_dict() for t in self.timers],
            "markers": [m.to_dict() for m in self.markers],
            "faults": [f.to_dict() for f in self.faults],
            "references": [r.to_dict() for r in self.references],
            "comments": [c.to_dict() for c in self.comments],
            "statistics": self.statistics.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }
