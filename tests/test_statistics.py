"""
Tests for program statistics.
"""

from standaardwerk.models import (
    Combinator, Condition, ConditionGroup, ProgramModel, Reference, Step,
    StepKind, VariableDeclaration, VariableKind,
)
from standaardwerk.statistics import complexity_score, compute_statistics


class TestComplexityScore:
    """Test the weighted complexity score."""

    def test_weights(self):
        assert complexity_score(1, 0, 0, 0) == 2
        assert complexity_score(0, 0, 0, 1) == 3
        assert complexity_score(2, 2, 0, 0) == 7

    def test_rounds_half_up(self):
        """Test 1.5 rounds to 2 and 2.5 rounds to 3."""
        assert complexity_score(0, 1, 0, 0) == 2
        # 1.5 * 3 = 4.5
        assert complexity_score(0, 3, 0, 0) == 5
        # 1.2 * 2 = 2.4
        assert complexity_score(0, 0, 2, 0) == 2


class TestComputeStatistics:
    """Test compute_statistics against hand-built models."""

    def test_empty_model(self):
        stats = compute_statistics(ProgramModel())
        assert stats.total_steps == 0
        assert stats.complexity_score == 0

    def test_counts(self):
        """Test every counter and the combined score."""
        reference = Reference("Freigabe", "Einlauf", [3])
        step = Step(StepKind.STEP, 1, condition_groups=[
            ConditionGroup(Combinator.AND, [Condition("A"), Condition("Freigabe", cross_reference=reference)]),
            ConditionGroup(Combinator.OR, [Condition("B", is_or_alternative=True)]),
        ])
        model = ProgramModel(
            name="Band",
            steps=[Step(StepKind.IDLE, 0), step],
            variables=[VariableDeclaration(VariableKind.VARIABLE, "Freigabe", conditions=[Condition("X")])],
            timers=[VariableDeclaration(VariableKind.TIMER, "Zeit Nachlauf")],
            references=[reference],
        )

        stats = model.recompute_statistics()

        assert stats.total_steps == 2
        # Declaration conditions do not count
        assert stats.total_conditions == 3
        assert stats.total_variables == 2
        assert stats.external_references == 1
        # 2*2 + 1.5*3 + 1.2*2 + 3*1 = 13.9
        assert stats.complexity_score == 14
        assert model.statistics is stats
