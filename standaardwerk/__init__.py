"""
Standaardwerk: a parser for industrial step-program listings.

Supports:
- German, Dutch and English keyword dialects (SCHRITT/STAP/STEP, RUHE/RUST/IDLE, ...)
- Configurable syntax rules loaded from YAML
- Step, condition group, cross-reference, timer and comparison extraction
- Documents holding several programs under headings
- JSON export of the program model
"""

from .errors import ConfigurationError, SyntaxRulesError
from .syntax_rules import SyntaxRules, DEFAULT_SYNTAX_RULES, load_syntax_rules
from .preprocessor import Preprocessor
from .line_classifier import LineClassifier, LineCategory, ClassifiedLine
from .condition_enricher import ConditionEnricher
from .reference_normalizer import ReferenceNormalizer, ProgramContext
from .parser import ProgramParser
from .statistics import compute_statistics
from .document import DocumentParser, DocumentBlock, blocks_from_html, generate_idb_name
from .export import export_programs_to_json, program_to_dict
from .models import ProgramModel, Step, Condition, ConditionGroup, Reference

__version__ = "1.0.0"
__all__ = [
    "ConfigurationError",
    "SyntaxRulesError",
    "SyntaxRules",
    "DEFAULT_SYNTAX_RULES",
    "load_syntax_rules",
    "Preprocessor",
    "LineClassifier",
    "LineCategory",
    "ClassifiedLine",
    "ConditionEnricher",
    "ReferenceNormalizer",
    "ProgramContext",
    "ProgramParser",
    "compute_statistics",
    "DocumentParser",
    "DocumentBlock",
    "blocks_from_html",
    "generate_idb_name",
    "export_programs_to_json",
    "program_to_dict",
    "ProgramModel",
    "Step",
    "Condition",
    "ConditionGroup",
    "Reference",
]
