"""
Tests for the equation schemas, exercise validation and answer evaluation.
"""

from fractions import Fraction

import pytest
from pydantic import ValidationError

from algespace.core.exceptions import ExerciseError
from algespace.data.examples import equation, get_equalization_exercises, get_suitability_exercises
from algespace.games.expression import InputResult, check_answer, evaluate, is_well_formed
from algespace.models.enums import EqualizationItemType, FlexibilityExercisePhase, Method
from algespace.schemas.flexibility import ComparisonMethod, SuitabilityExercise
from algespace.schemas.math import LinearSystem, Term
from algespace.schemas.study import CreateFlexibilityEntryRequest


class TestLinearEquation:

    def test_coefficients_are_collected_on_the_left(self):
        # 2x + 3 = y - 4
        eq = equation([(2, "x"), (3, "")], [(1, "y"), (-4, "")])

        assert eq.coefficient_of("x") == 2
        assert eq.coefficient_of("y") == -1
        assert eq.constant() == -7
        assert eq.variables() == ["x", "y"]

    def test_is_satisfied_by(self):
        eq = equation([(1, "y")], [(2, "x"), (1, "")])

        assert eq.is_satisfied_by({"x": 2, "y": 5})
        assert not eq.is_satisfied_by({"x": 2, "y": 4})

    def test_missing_variable_value(self):
        with pytest.raises(ExerciseError):
            Term(coefficient=2, variable="z").evaluate({"x": 1})

    def test_system_solve(self):
        system = LinearSystem(
            first=equation([(2, "x"), (3, "y")], [(12, "")]),
            second=equation([(4, "x"), (-3, "y")], [(6, "")]),
        )

        assert system.solve("x", "y") == pytest.approx((3, 2))

    def test_dependent_system_has_no_unique_solution(self):
        system = LinearSystem(
            first=equation([(1, "x"), (1, "y")], [(2, "")]),
            second=equation([(2, "x"), (2, "y")], [(4, "")]),
        )

        with pytest.raises(ExerciseError):
            system.solve("x", "y")


class TestExerciseValidation:

    def test_seed_exercises_are_consistent(self):
        for exercise in get_equalization_exercises():
            for eq in (exercise.first_equation, exercise.second_equation):
                assert eq.coefficient * exercise.second_variable.weight + eq.constant == exercise.isolated_variable.weight

    def test_equalization_weights_must_fit_the_equations(self):
        payload = get_equalization_exercises()[0].model_dump()
        payload["second_variable"]["weight"] = 40

        with pytest.raises(ValidationError):
            type(get_equalization_exercises()[0]).model_validate(payload)

    def test_variable_item_type(self):
        exercise = get_equalization_exercises()[0]
        item = exercise.isolated_variable.to_item(EqualizationItemType.ISOLATED_VARIABLE)

        assert item.amount == 1
        assert item.weight == 150

    def test_flexibility_solution_must_satisfy_both_equations(self):
        payload = get_suitability_exercises()[0].model_dump()
        payload["second_variable"]["value"] = 6

        with pytest.raises(ValidationError):
            SuitabilityExercise.model_validate(payload)

    def test_flexibility_system_must_have_a_unique_solution(self):
        payload = get_suitability_exercises()[0].model_dump()
        # 2y = 4x + 2 is the first equation doubled; (2, 5) still satisfies it
        payload["second_equation"] = equation([(2, "y")], [(4, "x"), (2, "")]).model_dump()

        with pytest.raises(ValidationError, match="no unique solution"):
            SuitabilityExercise.model_validate(payload)

    def test_comparison_needs_three_steps(self):
        with pytest.raises(ValidationError):
            ComparisonMethod(method=Method.EQUALIZATION, steps=["x = 2", "y = 5"])

    def test_method_labels(self):
        assert Method.SUBSTITUTION.label == "Substitution"
        assert FlexibilityExercisePhase.TRANSFORMATION_RESOLVE.column == "transformation_resolve"


class TestStudyRequests:

    def test_camel_case_and_snake_case_are_accepted(self):
        camel = CreateFlexibilityEntryRequest.model_validate({
            "userId": 1, "username": "p", "studyId": 1, "flexibilityId": 2,
            "exerciseId": 3, "exerciseType": 1,
        })
        snake = CreateFlexibilityEntryRequest(
            user_id=1, username="p", study_id=1, flexibility_id=2, exercise_id=3, exercise_type=1,
        )

        assert camel == snake

    def test_username_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            CreateFlexibilityEntryRequest(
                user_id=1, username="", study_id=1, flexibility_id=2, exercise_id=3, exercise_type=1,
            )


class TestExpression:

    def test_sum_is_correct(self):
        assert check_answer("3+4", 7) == InputResult.CORRECT

    def test_incomplete_expression_is_a_validation_error(self):
        assert check_answer("3+", 3) == InputResult.VALIDATION_ERROR

    def test_wrong_value_is_incorrect(self):
        assert check_answer("2*20", 50) == InputResult.INCORRECT

    def test_division(self):
        assert check_answer("100/2", 50) == InputResult.CORRECT
        assert evaluate("8/3") == Fraction(8, 3)

    def test_division_by_zero_has_no_value(self):
        assert evaluate("4/0") is None
        assert check_answer("4/0", 50) == InputResult.INCORRECT
        assert check_answer("0/0", 0) == InputResult.INCORRECT

    def test_python_only_operators_are_rejected(self):
        assert evaluate("3**2") is None
        assert check_answer("3**2", 9) == InputResult.VALIDATION_ERROR
        assert check_answer("9//2", 4) == InputResult.VALIDATION_ERROR

    def test_fractional_values_are_compared(self):
        assert check_answer("7/2", 3.5) == InputResult.CORRECT

    def test_only_digits_and_operators(self):
        assert not is_well_formed("")
        assert not is_well_formed("x+1")
        assert not is_well_formed("12345678901")
        assert is_well_formed("1234567890")
        assert check_answer(" 50 ", 50) == InputResult.CORRECT
