"""
Document orchestration.

A listing document is a flat sequence of headings and paragraphs, as
produced by a Word-to-HTML extractor. Program titles (``<name> FB<n>``)
start a new program; the paragraphs below a title are its listing text.
Every program is parsed independently with ProgramParser.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from bs4 import BeautifulSoup

from .models import ProgramModel
from .parser import ProgramParser
from .syntax_rules import SyntaxRules, DEFAULT_SYNTAX_RULES

logger = logging.getLogger(__name__)

HEADING_KINDS = ("h1", "h2", "h3", "h4", "h5", "h6")
BLOCK_KINDS = HEADING_KINDS + ("p",)
DEFAULT_IDB_NAME = "Generated_IDB"


@dataclass
class DocumentBlock:
    """One heading or paragraph of a document."""
    tag_kind: str
    text: str

    @property
    def is_heading(self) -> bool:
        return self.tag_kind in HEADING_KINDS

    @property
    def level(self) -> int:
        """Heading level 1-6, or 0 for paragraphs."""
        return int(self.tag_kind[1]) if self.is_heading else 0


@dataclass
class DocumentStatistics:
    total_programs: int = 0
    total_steps: int = 0
    total_conditions: int = 0
    total_variables: int = 0
    total_timers: int = 0
    total_markers: int = 0
    total_faults: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_programs": self.total_programs,
            "total_steps": self.total_steps,
            "total_conditions": self.total_conditions,
            "total_variables": self.total_variables,
            "total_timers": self.total_timers,
            "total_markers": self.total_markers,
            "total_faults": self.total_faults,
        }


@dataclass
class DocumentResult:
    """Programs found in a document plus document-level issues."""
    programs: List[ProgramModel] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    statistics: DocumentStatistics = field(default_factory=DocumentStatistics)


def blocks_from_html(document_html: str) -> List[DocumentBlock]:
    """
    Split extractor HTML into heading and paragraph blocks.

    Nested tags are stripped and entities unescaped. ``<br>`` inside a
    paragraph becomes a line break. Unclosed ``<p>`` tags end at the next
    block, as browsers read them.
    """
    soup = BeautifulSoup(document_html or "", "lxml")
    for line_break in soup.find_all("br"):
        line_break.replace_with("\n")

    blocks = []
    for element in soup.find_all(list(BLOCK_KINDS)):
        # A block nested in another block is part of the outer text
        if element.find_parent(list(BLOCK_KINDS)) is not None:
            continue
        blocks.append(DocumentBlock(element.name, element.get_text().strip("\r\n")))
    return blocks


def blocks_from_records(records: Iterable[Dict[str, Any]]) -> List[DocumentBlock]:
    """Build blocks from JSON records with ``tag_kind``/``text`` (or ``type``/``content``) keys."""
    blocks = []
    for record in records:
        tag_kind = str(record.get("tag_kind", record.get("type", "p"))).lower()
        if tag_kind not in BLOCK_KINDS:
            logger.warning(f"Skipping block with unknown tag kind: {tag_kind}")
            continue
        blocks.append(DocumentBlock(tag_kind, str(record.get("text", record.get("content", "")))))
    return blocks


def generate_idb_name(program_name: Optional[str]) -> str:
    """
    Derive an instance data block name from a program name.

    Leading numbering is dropped, colons become underscores and the words are
    joined in camel case. Anything but letters, digits and underscores is
    removed.

    Args:
        program_name: Program title such as ``1.2 Band Steuerung``

    Returns:
        Generated name, ``Generated_IDB`` if nothing usable remains
    """
    if not program_name:
        return DEFAULT_IDB_NAME
    name = re.sub(r"^[\d.]+\s*", "", program_name).strip().replace(":", "_")
    words = [word for word in name.split(" ") if word]
    joined = "".join(word if i == 0 else word[0].upper() + word[1:] for i, word in enumerate(words))
    return re.sub(r"[^a-zA-Z0-9_]", "", joined) or DEFAULT_IDB_NAME


@dataclass
class _PendingProgram:
    name: str
    function_block: str
    program_type: Optional[str]
    title: str
    folder_path: List[str]
    idb_name: Optional[str] = None
    lines: List[str] = field(default_factory=list)


class DocumentParser:
    """Splits a document into programs and parses each of them."""

    def __init__(self, syntax_rules: SyntaxRules = DEFAULT_SYNTAX_RULES):
        self.rules = syntax_rules
        self.program_parser = ProgramParser(syntax_rules)

        program_type = syntax_rules.keyword_pattern("program_type")
        idb = "(?:" + "|".join(re.escape(p) for p in syntax_rules.idb_prefixes) + ")"
        self.patterns = {
            # Sortentrennung FB12, optionally followed by a page number
            "program_title": re.compile(
                rf"^(?:(?P<program_type>{program_type})\s+)?(?P<name>[^():=]+?)\s+"
                rf"(?P<kind>FB|FC)\s?(?P<number>\d+)(?:\s+\d+)?\s*$",
                re.IGNORECASE,
            ),
            "idb": re.compile(rf"^\s*{idb}\s*:\s*(?P<name>.*)$", re.IGNORECASE),
        }

    def parse_html(self, document_html: str) -> DocumentResult:
        return self.parse_blocks(blocks_from_html(document_html))

    def parse_blocks(self, blocks: Iterable[DocumentBlock]) -> DocumentResult:
        """
        Parse every program in a block sequence.

        Args:
            blocks: Headings and paragraphs in document order

        Returns:
            DocumentResult with one ProgramModel per program title
        """
        result = DocumentResult()
        heading_path: List[Optional[str]] = [None] * len(HEADING_KINDS)
        seen_blocks: Dict[str, str] = {}
        current: Optional[_PendingProgram] = None
        started = False

        for block in blocks:
            if not started and block.is_heading:
                started = True
            if not started:
                continue

            title = self.patterns["program_title"].match(block.text.strip())
            if title:
                if current is not None:
                    self._finish(current, result)
                current = self._start_program(block, title, heading_path, seen_blocks, result)
            elif current is not None and not block.is_heading:
                self._collect(current, block)

            if block.is_heading:
                level = block.level - 1
                heading_path[level] = block.text.split("\t")[0].strip()
                for deeper in range(level + 1, len(heading_path)):
                    heading_path[deeper] = None

        if current is not None:
            self._finish(current, result)

        result.statistics = self._aggregate(result.programs)
        logger.info(
            f"Parsed document: {result.statistics.total_programs} programs, "
            f"{result.statistics.total_steps} steps, {len(result.warnings)} warnings"
        )
        return result

    def _start_program(
        self,
        block: DocumentBlock,
        title: re.Match,
        heading_path: List[Optional[str]],
        seen_blocks: Dict[str, str],
        result: DocumentResult,
    ) -> _PendingProgram:
        name = title.group("name").strip()
        function_block = f"{title.group('kind').upper()}{int(title.group('number'))}"
        program_type = title.group("program_type")

        # Headings above the title's own level
        depth = block.level - 1 if block.is_heading else len(heading_path)
        folder_path = [heading for heading in heading_path[:depth] if heading]

        if function_block in seen_blocks:
            message = f"Duplicate function block {function_block} at '{name}', already used by '{seen_blocks[function_block]}'"
            logger.warning(message)
            result.warnings.append(message)
        else:
            seen_blocks[function_block] = name

        logger.debug(f"Found program: {name} {function_block}")
        return _PendingProgram(
            name=name,
            function_block=function_block,
            program_type=program_type.strip() if program_type else None,
            title=block.text.strip(),
            folder_path=folder_path,
        )

    def _collect(self, program: _PendingProgram, block: DocumentBlock) -> None:
        for line in block.text.split("\n"):
            idb = self.patterns["idb"].match(line)
            if idb:
                if program.idb_name is None and idb.group("name").strip():
                    program.idb_name = idb.group("name").strip()
                continue
            program.lines.append(line)

    def _finish(self, program: _PendingProgram, result: DocumentResult) -> None:
        if not any(line.strip() for line in program.lines):
            message = f"Program '{program.name}' ({program.function_block}) has no listing text"
            logger.warning(message)
            result.warnings.append(message)

        model = self.program_parser.parse(
            "\n".join(program.lines),
            program_name=program.name,
            function_block=program.function_block,
            idb_name=program.idb_name or generate_idb_name(program.name),
            folder_path=program.folder_path,
        )
        if program.program_type and not model.program_type:
            model.program_type = program.program_type

        for issue in model.errors:
            result.errors.append(f"{model.name} line {issue.line_number}: {issue.message}")
        result.programs.append(model)

    @staticmethod
    def _aggregate(programs: List[ProgramModel]) -> DocumentStatistics:
        return DocumentStatistics(
            total_programs=len(programs),
            total_steps=sum(p.statistics.total_steps for p in programs),
            total_conditions=sum(p.statistics.total_conditions for p in programs),
            total_variables=sum(len(p.variables) for p in programs),
            total_timers=sum(len(p.timers) for p in programs),
            total_markers=sum(len(p.markers) for p in programs),
            total_faults=sum(len(p.faults) for p in programs),
        )
