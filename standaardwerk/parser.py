"""
Step-program listing parser.

Folds the classified lines of one program listing into a ProgramModel. The
fold keeps at most one open cursor: either the current step or the current
top-level declaration. Conditions attach to whichever is open.

Example listing:

    Sortentrennung FB12
    Symbolik IDB: Sortentrennung_IDB
    RUHE: Warten
        NICHT Stoerung
    SCHRITT 1: Band starten
        Freigabe (Einlauf SCHRITT 3+4)
        + Handbetrieb
        ZEIT ~ 5 Sek
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .condition_enricher import ConditionEnricher
from .line_classifier import ClassifiedLine, LineCategory, LineClassifier
from .models import (
    Combinator, Comment, Condition, ConditionGroup, ParseIssue, ProgramModel,
    Step, VariableDeclaration, VariableKind,
)
from .preprocessor import Preprocessor
from .reference_normalizer import ProgramContext, ReferenceNormalizer
from .syntax_rules import SyntaxRules, DEFAULT_SYNTAX_RULES

logger = logging.getLogger(__name__)


@dataclass
class _ParseState:
    """Mutable cursor state of a single parse call."""
    model: ProgramModel
    current_step: Optional[Step] = None
    current_variable: Optional[VariableDeclaration] = None
    or_block: Optional[ConditionGroup] = None
    or_block_line: int = 0
    seen_step_numbers: Set[int] = field(default_factory=set)
    comment_block: Optional[Comment] = None
    constructs_seen: bool = False

    @property
    def cursor_open(self) -> bool:
        return self.current_step is not None or self.current_variable is not None

    @property
    def context(self) -> ProgramContext:
        return ProgramContext(
            name=self.model.name or None,
            function_block_id=self.model.function_block_id or None,
        )


class ProgramParser:
    """Parses one program listing into a ProgramModel."""

    def __init__(self, syntax_rules: SyntaxRules = DEFAULT_SYNTAX_RULES):
        syntax_rules.validate()
        self.rules = syntax_rules
        self.preprocessor = Preprocessor(syntax_rules)
        self.classifier = LineClassifier(syntax_rules)
        self.enricher = ConditionEnricher(syntax_rules)
        self.normalizer = ReferenceNormalizer()

        self.handlers = {
            LineCategory.BLANK: self._handle_blank,
            LineCategory.COMMENT: self._handle_comment,
            LineCategory.PROGRAM_HEADER: self._handle_program_header,
            LineCategory.IDB_DECLARATION: self._handle_idb,
            LineCategory.IDLE_HEADER: self._handle_step_header,
            LineCategory.STEP_HEADER: self._handle_step_header,
            LineCategory.END_HEADER: self._handle_step_header,
            LineCategory.VARIABLE_DECLARATION: self._handle_variable,
            LineCategory.OR_BLOCK_OPEN: self._handle_or_block_open,
            LineCategory.OR_BLOCK_CLOSE: self._handle_or_block_close,
            LineCategory.CONDITION: self._handle_condition,
            LineCategory.UNRECOGNIZED: self._handle_unrecognized,
        }

    def parse(
        self,
        text: str,
        program_name: Optional[str] = None,
        function_block: Optional[str] = None,
        idb_name: Optional[str] = None,
        folder_path: Optional[List[str]] = None,
    ) -> ProgramModel:
        """
        Parse a program listing.

        Data problems never raise; they end up in ``model.warnings`` or
        ``model.errors`` keyed by source line number.

        Args:
            text: Raw listing text
            program_name: Program name, overrides a header line in the text
            function_block: Function block id such as ``FB12``
            idb_name: Instance data block name
            folder_path: Heading path the program was found under

        Returns:
            Assembled ProgramModel with statistics filled in
        """
        model = ProgramModel(
            name=program_name or "",
            function_block_id=function_block or "",
            idb_name=idb_name,
            folder_path=list(folder_path or []),
        )
        state = _ParseState(model=model)

        for line_number, line in self.preprocessor.normalize_lines(text or ""):
            if state.comment_block is not None:
                self._continue_comment_block(state, line)
                continue
            classified = self.classifier.classify(
                line,
                line_number,
                header_allowed=not state.constructs_seen,
                program_named=bool(model.name),
                cursor_open=state.cursor_open,
            )
            if classified.warning:
                self._warn(state, classified.line_number, classified.warning, classified.text)
            self.handlers[classified.category](state, classified)
            if classified.comment:
                model.comments.append(Comment(classified.line_number, classified.comment))

        if state.comment_block is not None:
            self._warn(state, state.comment_block.line_number, "Unterminated block comment")
        self._close_or_block(state)
        model.recompute_statistics()

        logger.info(
            f"Parsed program '{model.name or '<unnamed>'}': {model.statistics.total_steps} steps, "
            f"{model.statistics.total_conditions} conditions, {model.statistics.total_variables} variables, "
            f"{len(model.warnings)} warnings, {len(model.errors)} errors"
        )
        return model

    def _warn(self, state: _ParseState, line_number: int, message: str, text: str = "") -> None:
        logger.warning(f"Line {line_number}: {message}")
        state.model.warnings.append(ParseIssue(line_number, message, text))

    def _error(self, state: _ParseState, line_number: int, message: str, text: str = "") -> None:
        logger.error(f"Line {line_number}: {message}")
        state.model.errors.append(ParseIssue(line_number, message, text))

    # Handlers

    def _handle_blank(self, state: _ParseState, line: ClassifiedLine) -> None:
        self._close_or_block(state, at_blank_line=True)

    def _handle_comment(self, state: _ParseState, line: ClassifiedLine) -> None:
        comment = Comment(line.line_number, line.description or "")
        state.model.comments.append(comment)
        if line.opens_comment_block:
            state.comment_block = comment

    def _continue_comment_block(self, state: _ParseState, line: str) -> None:
        """Append a line to the open block comment, closing it at the delimiter."""
        body, closer, rest = line.strip().partition(self.rules.block_comment_close)
        block = state.comment_block
        if body.strip():
            block.text = f"{block.text}\n{body.strip()}" if block.text else body.strip()
        if closer:
            state.comment_block = None
            if rest.strip():
                logger.debug(f"Line {block.line_number}: text after block comment ignored: {rest.strip()}")

    def _handle_program_header(self, state: _ParseState, line: ClassifiedLine) -> None:
        model = state.model
        if not model.name and line.name:
            model.name = line.name
        if not model.function_block_id and line.function_block:
            model.function_block_id = line.function_block
        if not model.program_type and line.program_type:
            model.program_type = line.program_type
        logger.debug(f"Program header: {model.name} {model.function_block_id}")

    def _handle_idb(self, state: _ParseState, line: ClassifiedLine) -> None:
        if not state.model.idb_name and line.name:
            state.model.idb_name = line.name

    def _handle_step_header(self, state: _ParseState, line: ClassifiedLine) -> None:
        self._close_cursors(state)
        state.constructs_seen = True

        step = Step(
            kind=line.step_kind,
            number=line.number or 0,
            description=line.description or "",
            line_number=line.line_number,
            keyword=line.keyword or "",
        )
        if step.number:
            if step.number in state.seen_step_numbers:
                self._error(state, line.line_number, f"Duplicate step number {step.number}", line.text)
            state.seen_step_numbers.add(step.number)

        state.model.steps.append(step)
        state.current_step = step
        logger.debug(f"Line {line.line_number}: opened {step.kind.value} {step.number}")

    def _handle_variable(self, state: _ParseState, line: ClassifiedLine) -> None:
        self._close_cursors(state)
        state.constructs_seen = True

        declaration = VariableDeclaration(
            kind=line.variable_kind or VariableKind.VARIABLE,
            name=line.name or "",
            value=line.value,
            description=line.description,
            line_number=line.line_number,
        )
        target = {
            VariableKind.VARIABLE: state.model.variables,
            VariableKind.TIMER: state.model.timers,
            VariableKind.MARKER: state.model.markers,
            VariableKind.FAULT: state.model.faults,
        }[declaration.kind]
        target.append(declaration)
        state.current_variable = declaration

    def _handle_or_block_open(self, state: _ParseState, line: ClassifiedLine) -> None:
        if state.current_step is None:
            self._warn(state, line.line_number, "OR block outside of a step", line.text)
            return
        self._close_or_block(state)
        state.or_block = ConditionGroup(combinator=Combinator.OR)
        state.or_block_line = line.line_number
        state.current_step.condition_groups.append(state.or_block)

    def _handle_or_block_close(self, state: _ParseState, line: ClassifiedLine) -> None:
        if state.or_block is None:
            self._warn(state, line.line_number, "OR block closed without being opened", line.text)
            return
        self._finish_or_block(state)

    def _handle_condition(self, state: _ParseState, line: ClassifiedLine) -> None:
        result = self.enricher.enrich(line.text, line.line_number)
        condition = result.condition
        for message in result.warnings:
            self._warn(state, line.line_number, message, line.text)

        if condition.cross_reference is not None:
            reference, warnings = self.normalizer.normalize(condition.cross_reference, state.context)
            for message in warnings:
                self._warn(state, line.line_number, message, line.text)
            condition.cross_reference = reference

        if state.current_step is not None:
            self._attach_to_step(state, state.current_step, condition)
        elif state.current_variable is not None:
            state.current_variable.conditions.append(condition)
            if condition.cross_reference is not None:
                state.current_variable.references.append(condition.cross_reference)
                state.model.references.append(condition.cross_reference)

    def _handle_unrecognized(self, state: _ParseState, line: ClassifiedLine) -> None:
        if line.warning is None:
            self._warn(state, line.line_number, "Unrecognized line", line.text)

    # Cursor management

    def _attach_to_step(self, state: _ParseState, step: Step, condition: Condition) -> None:
        if state.or_block is not None:
            condition.is_or_alternative = True
            state.or_block.conditions.append(condition)
        elif condition.is_or_alternative:
            step.condition_groups.append(ConditionGroup(Combinator.OR, [condition]))
        elif step.condition_groups and step.condition_groups[-1].combinator is Combinator.AND:
            step.condition_groups[-1].conditions.append(condition)
        else:
            step.condition_groups.append(ConditionGroup(Combinator.AND, [condition]))

        if condition.timer is not None:
            step.timers.append(condition.timer)
        marker = self.enricher.marker_ref(condition.text, condition.line_number)
        if marker is not None:
            step.markers.append(marker)
        fault = self.enricher.fault_ref(condition.text, condition.line_number)
        if fault is not None:
            step.faults.append(fault)
        if condition.cross_reference is not None:
            step.references.append(condition.cross_reference)
            state.model.references.append(condition.cross_reference)

    def _close_cursors(self, state: _ParseState) -> None:
        self._close_or_block(state)
        state.current_step = None
        state.current_variable = None

    def _close_or_block(self, state: _ParseState, at_blank_line: bool = False) -> None:
        """Close an unterminated bracket block at a blank line or a new construct."""
        if state.or_block is None:
            return
        message = "Unterminated OR block"
        if at_blank_line:
            message += ", closed at blank line"
        self._warn(state, state.or_block_line, message)
        self._finish_or_block(state)

    def _finish_or_block(self, state: _ParseState) -> None:
        block = state.or_block
        state.or_block = None
        if block is not None and not block.conditions and state.current_step is not None:
            state.current_step.condition_groups = [
                group for group in state.current_step.condition_groups if group is not block
            ]
