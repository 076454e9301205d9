"""
Model enums.

Numeric values are part of the wire format: the frontend sends them as
integers, in declaration order.
"""
from enum import Enum, IntEnum


class LabelEnum(IntEnum):
    """IntEnum with a CamelCase label, as written into action logs."""

    @property
    def label(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


class ColumnEnum(IntEnum):
    """IntEnum whose members name a tracking column."""

    @property
    def column(self) -> str:
        return self.name.lower()


class Method(LabelEnum):
    """Methods for solving a system of two linear equations."""
    EQUALIZATION = 0
    SUBSTITUTION = 1
    ELIMINATION = 2


class FlexibilityExerciseType(IntEnum):
    EFFICIENCY = 0
    SUITABILITY = 1
    MATCHING = 2


class FlexibilityStudyExerciseType(IntEnum):
    WORKED_EXAMPLES = 0
    SUITABILITY = 1
    EFFICIENCY = 2
    MATCHING = 3
    TIP_EXERCISE = 4
    PLAIN_EXERCISE = 5


class CKExerciseType(IntEnum):
    EQUALIZATION = 0
    SUBSTITUTION = 1
    ELIMINATION = 2


class AgentCondition(IntEnum):
    NONE = 0
    AGENT = 1
    MOTIVATIONAL_AGENT = 2


class AgentType(IntEnum):
    MALE_CAUCASIAN = 0
    FEMALE_CAUCASIAN = 1
    MALE_ASIAN = 2
    FEMALE_ASIAN = 3
    MALE_EASTERN = 4
    FEMALE_EASTERN = 5
    MALE_AFRICAN = 6
    FEMALE_AFRICAN = 7


class IsolatedIn(IntEnum):
    """Where (and how) a variable is isolated in an equation."""
    FIRST = 0
    SECOND = 1
    NONE = 2
    FIRST_MULTIPLE = 3
    SECOND_MULTIPLE = 4
    ELIMINATION = 5
    ELIMINATION_FIRST = 6
    ELIMINATION_SECOND = 7


class SelectedEquation(LabelEnum):
    FIRST_INITIAL = 0
    SECOND_INITIAL = 1
    FIRST_TRANSFORMED = 2
    SECOND_TRANSFORMED = 3


class FlexibilityExercisePhase(ColumnEnum):
    """Phases whose elapsed time and error count are tracked."""
    EFFICIENCY_SELECTION = 0
    SYSTEM_SELECTION = 1
    SELF_EXPLANATION = 2
    TRANSFORMATION = 3
    EQUALIZATION = 4
    SUBSTITUTION = 5
    ELIMINATION = 6
    FIRST_SOLUTION = 7
    SECOND_SOLUTION = 8
    COMPARISON = 9
    TRANSFORMATION_RESOLVE = 10
    EQUALIZATION_RESOLVE = 11
    SUBSTITUTION_RESOLVE = 12
    ELIMINATION_RESOLVE = 13
    RESOLVE_CONCLUSION = 14

    @property
    def records_choice(self) -> bool:
        return self in (FlexibilityExercisePhase.COMPARISON, FlexibilityExercisePhase.RESOLVE_CONCLUSION)


class FlexibilityExerciseActionPhase(ColumnEnum):
    """Columns that accumulate free-text action logs."""
    SELECTED_METHOD = 0
    EFFICIENCY_SELECTION_ACTIONS = 1
    SYSTEM_MATCHING_ACTIONS = 2
    SELF_EXPLANATION_ACTIONS = 3
    TRANSFORMATION_ACTIONS = 4
    EQUALIZATION_ACTIONS = 5
    SUBSTITUTION_ACTIONS = 6
    ELIMINATION_ACTIONS = 7
    FIRST_SOLUTION_ACTIONS = 8
    EQUATION_SELECTION = 9
    SECOND_SOLUTION_ACTIONS = 10


class FlexibilityExerciseChoicePhase(ColumnEnum):
    """Columns that hold a single discrete decision."""
    SELF_EXPLANATION_CHOICE = 0
    FIRST_SOLUTION_CHOICE = 1
    SECOND_SOLUTION_CHOICE = 2
    COMPARISON_CHOICE = 3
    RESOLVING_CHOICE = 4


class EqualizationPhase(ColumnEnum):
    """Tracked phases of an equalization (conceptual knowledge) exercise."""
    EQUALIZATION = 0
    SIMPLIFICATION = 1
    FIRST_SOLUTION = 2
    SECOND_SOLUTION = 3

    @property
    def actions_column(self) -> str:
        return f"{self.column}_actions"


class EqualizationItemType(str, Enum):
    """Kinds of items placed on a scale."""
    ISOLATED_VARIABLE = "isolated-variable"
    SECOND_VARIABLE = "second-variable"
    WEIGHT = "weight"
