"""Program statistics and complexity score."""

import math

from .models import ProgramModel, ProgramStatistics

STEP_WEIGHT = 2
CONDITION_WEIGHT = 1.5
VARIABLE_WEIGHT = 1.2
REFERENCE_WEIGHT = 3


def complexity_score(steps: int, conditions: int, variables: int, references: int) -> int:
    """Weighted size of a program, rounded half up."""
    raw = (
        STEP_WEIGHT * steps
        + CONDITION_WEIGHT * conditions
        + VARIABLE_WEIGHT * variables
        + REFERENCE_WEIGHT * references
    )
    return int(math.floor(raw + 0.5))


def compute_statistics(model: ProgramModel) -> ProgramStatistics:
    """
    Derive statistics from the lists of a program model.

    Only conditions attached to steps count towards total_conditions.
    """
    total_steps = len(model.steps)
    total_conditions = sum(step.condition_count for step in model.steps)
    total_variables = len(model.variables) + len(model.timers) + len(model.markers) + len(model.faults)
    external_references = len(model.references)

    return ProgramStatistics(
        total_steps=total_steps,
        total_conditions=total_conditions,
        total_variables=total_variables,
        external_references=external_references,
        complexity_score=complexity_score(total_steps, total_conditions, total_variables, external_references),
    )
