"""
Seed exercises and the first flexibility study.
"""
from typing import List, Sequence, Tuple

from algespace.models.enums import (
    EqualizationItemType,
    FlexibilityStudyExerciseType,
    IsolatedIn,
    Method,
)
from algespace.schemas.equalization import (
    EqualizationEquation,
    EqualizationExercise,
    EqualizationItem,
    EqualizationVariable,
)
from algespace.schemas.flexibility import (
    ComparisonMethod,
    EfficiencyExercise,
    FlexibilityExercisesResponse,
    MatchableSystem,
    MatchingExercise,
    SelfExplanation,
    SuitabilityExercise,
)
from algespace.schemas.math import LinearEquation, Term, Variable
from algespace.schemas.study import FlexibilityStudyExerciseResponse

FIRST_STUDY_ID = 1


def _side(terms: Sequence[Tuple[float, str]]) -> List[Term]:
    return [Term(coefficient=coefficient, variable=variable or None) for coefficient, variable in terms]


def equation(left: Sequence[Tuple[float, str]], right: Sequence[Tuple[float, str]]) -> LinearEquation:
    """Build an equation from (coefficient, variable) pairs; an empty variable marks a constant."""
    return LinearEquation(left_terms=_side(left), right_terms=_side(right))


def _weight(grams: int, amount: int) -> EqualizationItem:
    return EqualizationItem(name=f"weight{grams}", weight=grams, amount=amount, item_type=EqualizationItemType.WEIGHT)


def get_equalization_exercises() -> List[EqualizationExercise]:
    return [
        EqualizationExercise(
            id=1,
            isolated_variable=EqualizationVariable(name="apple", weight=150, amount=4),
            second_variable=EqualizationVariable(name="kiwi", weight=50, amount=6),
            first_equation=EqualizationEquation(coefficient=3, constant=0),
            second_equation=EqualizationEquation(coefficient=1, constant=100),
            weights=[_weight(100, 2), _weight(50, 2)],
            equalization_hints=[
                "Both equations describe the weight of one apple.",
                "Put the right-hand side of each equation on one pan of the scale.",
            ],
            simplification_hints=["Remove the same items from both pans."],
            second_variable_hints=["Two kiwis weigh as much as 100 g."],
            isolated_variable_hints=["Replace the apple by three kiwis on the digital scale."],
        ),
        EqualizationExercise(
            id=2,
            isolated_variable=EqualizationVariable(name="lemon", weight=100, amount=4),
            second_variable=EqualizationVariable(name="strawberry", weight=40, amount=6),
            first_equation=EqualizationEquation(coefficient=2, constant=20),
            second_equation=EqualizationEquation(coefficient=1, constant=60),
            weights=[_weight(50, 2), _weight(20, 2), _weight(10, 2)],
            equalization_hints=["Put the right-hand side of each equation on one pan of the scale."],
            simplification_hints=["Remove one strawberry and 20 g from both pans."],
            second_variable_hints=["One strawberry weighs as much as 40 g."],
            isolated_variable_hints=["One lemon weighs as much as two strawberries and 20 g."],
        ),
        EqualizationExercise(
            id=3,
            isolated_variable=EqualizationVariable(name="pear", weight=120, amount=4),
            second_variable=EqualizationVariable(name="cherry", weight=30, amount=8),
            first_equation=EqualizationEquation(coefficient=4, constant=0),
            second_equation=EqualizationEquation(coefficient=2, constant=60),
            weights=[_weight(50, 2), _weight(10, 2)],
            maximum_capacity=10,
            equalization_hints=["Put the right-hand side of each equation on one pan of the scale."],
            simplification_hints=["Remove two cherries from both pans."],
            second_variable_hints=["Two cherries weigh as much as 60 g."],
            isolated_variable_hints=["One pear weighs as much as four cherries."],
        ),
    ]


def get_suitability_exercises() -> List[SuitabilityExercise]:
    return [
        SuitabilityExercise(
            id=1,
            first_equation=equation([(1, "y")], [(2, "x"), (1, "")]),
            second_equation=equation([(1, "y")], [(-1, "x"), (7, "")]),
            first_variable=Variable(name="x", value=2),
            second_variable=Variable(name="y", value=5),
            first_equation_is_isolated_in=IsolatedIn.SECOND,
            second_equation_is_isolated_in=IsolatedIn.SECOND,
            suitable_methods=[Method.EQUALIZATION, Method.SUBSTITUTION],
            comparison_methods=[
                ComparisonMethod(method=Method.EQUALIZATION, steps=[
                    "2x + 1 = -x + 7",
                    "3x = 6",
                    "x = 2",
                ]),
                ComparisonMethod(method=Method.SUBSTITUTION, steps=[
                    "2x + 1 = -x + 7 after replacing y",
                    "3x = 6",
                    "x = 2",
                ]),
            ],
            agent_message_for_comparison="Both equations are already solved for y.",
            agent_message_for_resolving="Try a method that uses the isolated y.",
        ),
        SuitabilityExercise(
            id=2,
            first_equation=equation([(2, "x"), (3, "y")], [(12, "")]),
            second_equation=equation([(4, "x"), (-3, "y")], [(6, "")]),
            first_variable=Variable(name="x", value=3),
            second_variable=Variable(name="y", value=2),
            first_equation_is_isolated_in=IsolatedIn.NONE,
            second_equation_is_isolated_in=IsolatedIn.NONE,
            suitable_methods=[Method.ELIMINATION],
            comparison_methods=[
                ComparisonMethod(method=Method.ELIMINATION, steps=[
                    "(2x + 3y) + (4x - 3y) = 12 + 6",
                    "6x = 18",
                    "x = 3",
                ]),
            ],
        ),
    ]


def get_efficiency_exercises() -> List[EfficiencyExercise]:
    return [
        EfficiencyExercise(
            id=1,
            first_equation=equation([(1, "x")], [(3, "y"), (-1, "")]),
            second_equation=equation([(2, "x"), (1, "y")], [(12, "")]),
            first_variable=Variable(name="x", value=5),
            second_variable=Variable(name="y", value=2),
            first_equation_is_isolated_in=IsolatedIn.FIRST,
            second_equation_is_isolated_in=IsolatedIn.NONE,
            efficient_methods=[Method.SUBSTITUTION],
            transformation_required=False,
            self_explanation_tasks=[
                SelfExplanation(
                    method=Method.SUBSTITUTION,
                    question="Why is substitution efficient for this system?",
                    options=[
                        "x is already isolated in the first equation.",
                        "Both equations are solved for the same variable.",
                        "The coefficients of y are opposite numbers.",
                    ],
                    correct_options=[0],
                ),
            ],
        ),
        EfficiencyExercise(
            id=2,
            first_equation=equation([(3, "x"), (2, "y")], [(16, "")]),
            second_equation=equation([(3, "x"), (-2, "y")], [(8, "")]),
            first_variable=Variable(name="x", value=4),
            second_variable=Variable(name="y", value=2),
            efficient_methods=[Method.ELIMINATION],
            transformation_required=False,
            question="Which method lets you solve this system with the fewest steps?",
            self_explanation_tasks=[
                SelfExplanation(
                    method=Method.ELIMINATION,
                    question="Why is elimination efficient for this system?",
                    options=[
                        "The coefficients of y are opposite numbers.",
                        "x is already isolated.",
                    ],
                    correct_options=[0],
                ),
            ],
        ),
    ]


def get_matching_exercises() -> List[MatchingExercise]:
    return [
        MatchingExercise(
            id=1,
            first_equation=equation([(1, "y")], [(1, "x"), (2, "")]),
            second_equation=equation([(1, "y")], [(3, "x"), (-4, "")]),
            first_variable=Variable(name="x", value=3),
            second_variable=Variable(name="y", value=5),
            first_equation_is_isolated_in=IsolatedIn.SECOND,
            second_equation_is_isolated_in=IsolatedIn.SECOND,
            method=Method.EQUALIZATION,
            alternative_systems=[
                MatchableSystem(
                    first_equation=equation([(1, "x"), (1, "y")], [(8, "")]),
                    second_equation=equation([(3, "x"), (-1, "y")], [(4, "")]),
                ),
                MatchableSystem(
                    first_equation=equation([(1, "x")], [(2, "y"), (-7, "")]),
                    second_equation=equation([(2, "x"), (1, "y")], [(11, "")]),
                ),
            ],
            self_explanation_task=SelfExplanation(
                method=Method.EQUALIZATION,
                question="Why does equalization fit this system?",
                options=["Both equations are solved for y.", "The coefficients of x are equal."],
                correct_options=[0],
            ),
        ),
    ]


def get_flexibility_exercises() -> FlexibilityExercisesResponse:
    return FlexibilityExercisesResponse(
        suitability_exercises=get_suitability_exercises(),
        efficiency_exercises=get_efficiency_exercises(),
        matching_exercises=get_matching_exercises(),
    )


def get_first_study() -> List[FlexibilityStudyExerciseResponse]:
    """Exercise order of the first flexibility study."""
    order = [
        (FlexibilityStudyExerciseType.WORKED_EXAMPLES, 1),
        (FlexibilityStudyExerciseType.SUITABILITY, 1),
        (FlexibilityStudyExerciseType.EFFICIENCY, 1),
        (FlexibilityStudyExerciseType.MATCHING, 1),
        (FlexibilityStudyExerciseType.SUITABILITY, 2),
        (FlexibilityStudyExerciseType.EFFICIENCY, 2),
        (FlexibilityStudyExerciseType.PLAIN_EXERCISE, 1),
    ]
    return [
        FlexibilityStudyExerciseResponse(id=index, exercise_type=exercise_type, exercise_id=exercise_id)
        for index, (exercise_type, exercise_id) in enumerate(order, start=1)
    ]
