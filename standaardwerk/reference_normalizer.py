"""
Cross-reference normalization.

References found by the condition enricher are resolved against the program
that contains them: a reference without a target program points at the
current program, and repeated step numbers are dropped.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .models import Reference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgramContext:
    """Identity of the program a reference appears in."""
    name: Optional[str] = None
    function_block_id: Optional[str] = None

    @property
    def identity(self) -> Optional[str]:
        return self.name or self.function_block_id or None


class ReferenceNormalizer:
    """Resolves self references and cleans up target step lists."""

    def normalize(self, reference: Reference, context: ProgramContext) -> Tuple[Reference, List[str]]:
        """
        Normalize one reference against the program it appears in.

        Args:
            reference: Reference as produced by the condition enricher
            context: Name and function block of the current program

        Returns:
            Tuple of (new Reference, warnings). The input is not modified.
        """
        warnings: List[str] = []
        steps = list(dict.fromkeys(reference.target_steps))

        if reference.target_program:
            return replace(reference, target_steps=steps), warnings

        target = context.identity
        if target is None:
            warnings.append(f"Unresolved cross-reference target: {reference.description}")
            logger.warning(f"Line {reference.line_number}: unresolved cross-reference target")
        else:
            logger.debug(f"Line {reference.line_number}: self reference resolved to {target}")

        return replace(reference, target_program=target, target_steps=steps, is_self_reference=True), warnings
