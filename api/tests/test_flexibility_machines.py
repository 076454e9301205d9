"""
Tests for the suitability, efficiency and matching exercise state machines.
"""

import random

import pytest

from algespace.core.exceptions import GameError, GameErrorType
from algespace.data.examples import equation
from algespace.games.computation import ComputationState
from algespace.games.expression import InputResult
from algespace.games.flexibility import (
    EfficiencyExerciseMachine,
    EndScreen,
    ExerciseState,
    MatchingExerciseMachine,
    SuitabilityExerciseMachine,
    SystemSolutionScreen,
    choose_agent,
    transformation_status,
)
from algespace.games.goals import GoalStore, Route
from algespace.models.enums import (
    AgentCondition,
    AgentType,
    FlexibilityExerciseActionPhase,
    FlexibilityExerciseChoicePhase,
    FlexibilityExercisePhase,
    FlexibilityStudyExerciseType,
    IsolatedIn,
    Method,
    SelectedEquation,
)
from algespace.tracking.tracker import FlexibilityTracker

# y = 2x + 1 and y = -x + 7 give 2x + 1 = -x + 7
EQUATED = equation([(2, "x"), (1, "")], [(-1, "x"), (7, "")])
# subtracting the equations gives 0 = 3x - 6
ELIMINATED = equation([(3, "x")], [(6, "")])
# x = 3y - 1 substituted into 2x + y = 12
SUBSTITUTED = equation([(7, "y"), (-2, "")], [(12, "")])


def _tracker(client, user, exercise, exercise_type, initial_phase, agent_condition=AgentCondition.NONE):
    return FlexibilityTracker(
        client, True, user, 1, exercise.id, exercise.id, exercise_type,
        agent_condition=agent_condition, initial_phase=initial_phase,
    )


def solve_both_variables(machine, second_value):
    """First value shown automatically, second one typed."""
    machine.decide_computation(False)
    machine.continue_after_solution()
    machine.select_equation(SelectedEquation.FIRST_INITIAL)
    machine.decide_computation(True)
    assert machine.submit_solution(second_value) == InputResult.CORRECT
    machine.continue_after_solution()


def play_suitability(machine, method, result, contains_first=True):
    machine.select_method(method)
    machine.complete_transformation()
    if method == Method.EQUALIZATION:
        machine.complete_equalization(result)
    elif method == Method.SUBSTITUTION:
        machine.complete_substitution(result, contains_first)
    else:
        machine.complete_elimination(result, contains_first)
    solve_both_variables(machine, "5")


@pytest.fixture
def suitability(suitability_exercise):
    return SuitabilityExerciseMachine(suitability_exercise)


@pytest.fixture
def tracked_suitability(suitability_exercise, recording_client, study_user):
    tracker = _tracker(
        recording_client, study_user, suitability_exercise,
        FlexibilityStudyExerciseType.SUITABILITY, FlexibilityExercisePhase.TRANSFORMATION,
    )
    machine = SuitabilityExerciseMachine(suitability_exercise, tracker=tracker, study_id=1)
    machine.start()
    return machine


class TestHelpers:

    def test_no_agent_without_agent_condition(self):
        assert choose_agent(AgentCondition.NONE, random.Random(1)) is None

    def test_agent_is_drawn_from_the_random_source(self):
        assert choose_agent(AgentCondition.AGENT, random.Random(3)) == choose_agent(AgentCondition.AGENT, random.Random(3))
        assert isinstance(choose_agent(AgentCondition.MOTIVATIONAL_AGENT, random.Random(3)), AgentType)

    def test_transformation_status(self):
        assert transformation_status(IsolatedIn.NONE) == IsolatedIn.ELIMINATION
        assert transformation_status(IsolatedIn.SECOND) == IsolatedIn.ELIMINATION_SECOND
        assert transformation_status(IsolatedIn.FIRST_MULTIPLE) == IsolatedIn.FIRST_MULTIPLE


class TestSuitability:

    def test_suitable_method_leads_to_comparison(self, suitability):
        play_suitability(suitability, Method.EQUALIZATION, EQUATED)
        assert suitability.state == ExerciseState.SYSTEM_SOLUTION

        screen = suitability.screen()
        assert isinstance(screen, SystemSolutionScreen)
        assert screen.compare_methods
        assert screen.comparison_method == Method.SUBSTITUTION

        suitability.decide_intervention(True)
        assert suitability.state == ExerciseState.COMPARISON
        assert suitability.find_comparison().method == Method.SUBSTITUTION

        suitability.conclude("Equalization")
        assert suitability.is_finished
        assert suitability.screen() == EndScreen(1)

    def test_system_solution_cannot_be_skipped(self, tracked_suitability, recording_client):
        play_suitability(tracked_suitability, Method.EQUALIZATION, EQUATED)

        with pytest.raises(GameError) as excinfo:
            tracked_suitability.finish()

        assert excinfo.value.error_type == GameErrorType.GAME_LOGIC_ERROR
        assert tracked_suitability.state == ExerciseState.SYSTEM_SOLUTION
        assert tracked_suitability.comparison_method is None
        assert "completeTracking" not in recording_client.routes()

    def test_unsuitable_method_leads_to_resolving(self, suitability, suitability_exercise):
        play_suitability(suitability, Method.ELIMINATION, ELIMINATED)

        suitability.decide_intervention(True)

        assert suitability.state == ExerciseState.SYSTEM_TRANSFORMATION_ON_RESOLVE
        assert suitability.comparison_method == suitability_exercise.suitable_methods[0]

        suitability.complete_resolve_transformation()
        assert suitability.state == ExerciseState.RESOLVE_WITH_EQUALIZATION_METHOD
        assert suitability.screen().resolving

        suitability.complete_resolve()
        assert suitability.state == ExerciseState.RESOLVE_CONCLUSION
        suitability.conclude("Equalization")
        assert suitability.is_finished

    def test_refusing_ends_the_exercise(self, suitability):
        play_suitability(suitability, Method.ELIMINATION, ELIMINATED)

        suitability.decide_intervention(False)

        assert suitability.is_finished
        assert suitability.comparison_method is None

    def test_first_variable_follows_the_isolated_equations(self, suitability):
        play_suitability(suitability, Method.EQUALIZATION, EQUATED)

        first, other = suitability.solution_variables()
        assert (first.name, other.name) == ("x", "y")

    def test_result_with_wrong_variable_is_a_logic_error(self, suitability):
        suitability.select_method(Method.SUBSTITUTION)
        suitability.complete_transformation()

        with pytest.raises(GameError) as excinfo:
            suitability.complete_substitution(EQUATED, contains_first=False)
        assert excinfo.value.error_type == GameErrorType.GAME_LOGIC_ERROR
        assert suitability.state == ExerciseState.SUBSTITUTION_METHOD

    def test_elimination_keeps_multiplied_equations(self, suitability, suitability_exercise):
        suitability.select_method(Method.ELIMINATION)
        suitability.complete_transformation()
        doubled = equation([(2, "y")], [(-2, "x"), (14, "")])

        suitability.complete_elimination(ELIMINATED, True, second_multiplied=doubled)

        assert suitability.transformed_system == (suitability_exercise.first_equation, doubled)
        assert suitability.transformation_info == (IsolatedIn.NONE, IsolatedIn.ELIMINATION)
        assert SelectedEquation.SECOND_TRANSFORMED in suitability.equation_options()

    def test_transformed_equation_needs_a_transformation(self, suitability):
        suitability.select_method(Method.EQUALIZATION)
        suitability.complete_transformation()
        suitability.complete_equalization(EQUATED)
        suitability.decide_computation(False)
        suitability.continue_after_solution()

        with pytest.raises(GameError):
            suitability.select_equation(SelectedEquation.FIRST_TRANSFORMED)

    def test_out_of_order_calls_are_logic_errors(self, suitability):
        with pytest.raises(GameError):
            suitability.complete_equalization(EQUATED)
        with pytest.raises(GameError):
            suitability.decide_intervention(True)
        with pytest.raises(GameError):
            suitability.conclude("Equalization")

    def test_agent_message_only_for_motivational_agent(self, suitability_exercise):
        plain = SuitabilityExerciseMachine(suitability_exercise, agent_condition=AgentCondition.AGENT, rng=random.Random(1))
        motivational = SuitabilityExerciseMachine(
            suitability_exercise, agent_condition=AgentCondition.MOTIVATIONAL_AGENT, rng=random.Random(1)
        )
        for machine in (plain, motivational):
            play_suitability(machine, Method.EQUALIZATION, EQUATED)

        assert plain.agent_type is not None
        assert plain.screen().agent_message is None
        assert motivational.screen().agent_message == suitability_exercise.agent_message_for_comparison

    def test_goals_are_updated_on_end(self, suitability_exercise):
        goals = GoalStore()
        completed = []
        machine = SuitabilityExerciseMachine(suitability_exercise, goals=goals, on_complete=completed.append)
        play_suitability(machine, Method.EQUALIZATION, EQUATED)

        machine.decide_intervention(False)

        assert goals.streaks[Route.FLEXIBILITY_TRAINING] == 1
        assert completed == [1]

    def test_study_exercise_is_marked_completed(self, suitability_exercise):
        goals = GoalStore()
        machine = SuitabilityExerciseMachine(suitability_exercise, goals=goals, study_id=1, flexibility_id=2)
        play_suitability(machine, Method.EQUALIZATION, EQUATED)

        machine.decide_intervention(False)

        assert goals.completed_study_exercises[1] == {2}
        assert goals.streaks[Route.FLEXIBILITY_TRAINING] == 0


class TestSuitabilityTracking:

    def test_tracked_calls(self, tracked_suitability, recording_client):
        play_suitability(tracked_suitability, Method.ELIMINATION, ELIMINATED)
        tracked_suitability.decide_intervention(True)

        calls = [(route, payload.get("phase")) for _, route, payload in recording_client.calls]
        assert calls == [
            ("createEntry", None),
            ("addActionToEntry", int(FlexibilityExerciseActionPhase.SELECTED_METHOD)),
            ("completePhaseTracking", int(FlexibilityExercisePhase.TRANSFORMATION)),
            ("completePhaseTracking", int(FlexibilityExercisePhase.ELIMINATION)),
            ("trackChoice", int(FlexibilityExerciseChoicePhase.FIRST_SOLUTION_CHOICE)),
            ("completePhaseTracking", int(FlexibilityExercisePhase.FIRST_SOLUTION)),
            ("addActionToEntry", int(FlexibilityExerciseActionPhase.EQUATION_SELECTION)),
            ("completePhaseTracking", int(FlexibilityExercisePhase.FIRST_SOLUTION)),
            ("trackChoice", int(FlexibilityExerciseChoicePhase.SECOND_SOLUTION_CHOICE)),
            ("addActionToEntry", int(FlexibilityExerciseActionPhase.SECOND_SOLUTION_ACTIONS)),
            ("completePhaseTracking", int(FlexibilityExercisePhase.SECOND_SOLUTION)),
            ("trackChoice", int(FlexibilityExerciseChoicePhase.RESOLVING_CHOICE)),
            ("addActionToEntry", int(FlexibilityExerciseActionPhase.TRANSFORMATION_ACTIONS)),
        ]
        assert recording_client.actions() == ["Elimination", "FirstInitial", "y=5,\nSUCCESS", "RESOLVE"]
        assert recording_client.calls[-2][2]["choice"] == "Yes to Equalization"

    def test_wrong_value_counts_an_error(self, tracked_suitability, recording_client):
        tracked_suitability.select_method(Method.EQUALIZATION)
        tracked_suitability.complete_transformation()
        tracked_suitability.complete_equalization(EQUATED)
        tracked_suitability.decide_computation(True)

        assert tracked_suitability.submit_solution("3") == InputResult.INCORRECT
        assert tracked_suitability.submit_solution("3+") == InputResult.VALIDATION_ERROR
        assert tracked_suitability.computation.state == ComputationState.MANUAL_COMPUTATION

        tracked_suitability.show_solution()
        assert tracked_suitability.computation.state == ComputationState.RESULT_AUTO
        assert recording_client.actions()[-2:] == ["x=3,\nFAILED", "SHOW solution"]
        assert tracked_suitability.tracker.errors_in_phase == 1

    def test_conclusion_reports_the_choice(self, tracked_suitability, recording_client):
        play_suitability(tracked_suitability, Method.EQUALIZATION, EQUATED)
        tracked_suitability.decide_intervention(True)

        tracked_suitability.conclude("Substitution")

        phase_end = recording_client.calls[-2][2]
        assert phase_end["phase"] == int(FlexibilityExercisePhase.COMPARISON)
        assert phase_end["choice"] == "Substitution"
        assert phase_end["errors"] == 0
        assert recording_client.routes()[-1] == "completeTracking"


class TestEfficiency:

    def test_inefficient_method_gets_feedback(self, efficiency_exercise):
        machine = EfficiencyExerciseMachine(efficiency_exercise)

        assert not machine.select_method(Method.EQUALIZATION)
        assert machine.feedback == "EQUALIZATION_NOT_EFFICIENT"
        assert not machine.screen().intervention_open

    def test_feedback_key_with_required_transformation(self):
        assert EfficiencyExerciseMachine.feedback_for(Method.ELIMINATION, True) == "ELIMINATION_NOT_EFFICIENT_NO_TRANSFORMATION"

    def test_efficient_method_with_self_explanation(self, efficiency_exercise):
        machine = EfficiencyExerciseMachine(efficiency_exercise)
        assert machine.select_method(Method.SUBSTITUTION)

        machine.answer_intervention(True)
        assert machine.state == ExerciseState.SELF_EXPLANATION
        assert not machine.submit_self_explanation([1])
        assert machine.submit_self_explanation([0])

        machine.continue_after_self_explanation()
        assert machine.state == ExerciseState.SUBSTITUTION_METHOD

        machine.complete_substitution(SUBSTITUTED, contains_first=False)
        first, _ = machine.solution_variables()
        assert first.name == "y"

    def test_skipping_self_explanation(self, efficiency_exercise):
        machine = EfficiencyExerciseMachine(efficiency_exercise)
        machine.select_method(Method.SUBSTITUTION)

        machine.answer_intervention(False)

        assert machine.state == ExerciseState.SUBSTITUTION_METHOD

    def test_transformation_when_required(self, efficiency_exercise):
        exercise = efficiency_exercise.model_copy(update={"transformation_required": True})
        machine = EfficiencyExerciseMachine(exercise)
        machine.select_method(Method.SUBSTITUTION)

        machine.answer_intervention(False)

        assert machine.state == ExerciseState.SYSTEM_TRANSFORMATION

    def test_intervention_needs_an_efficient_method(self, efficiency_exercise):
        machine = EfficiencyExerciseMachine(efficiency_exercise)
        machine.select_method(Method.ELIMINATION)

        with pytest.raises(GameError):
            machine.answer_intervention(True)

    def test_method_cannot_change_while_intervention_is_open(self, efficiency_exercise):
        machine = EfficiencyExerciseMachine(efficiency_exercise)
        machine.select_method(Method.SUBSTITUTION)

        with pytest.raises(GameError):
            machine.select_method(Method.ELIMINATION)

    def test_tracked_selection(self, efficiency_exercise, recording_client, study_user):
        tracker = _tracker(
            recording_client, study_user, efficiency_exercise,
            FlexibilityStudyExerciseType.EFFICIENCY, FlexibilityExercisePhase.EFFICIENCY_SELECTION,
        )
        machine = EfficiencyExerciseMachine(efficiency_exercise, tracker=tracker)
        machine.start()
        machine.select_method(Method.ELIMINATION)
        machine.select_method(Method.SUBSTITUTION)
        machine.answer_intervention(True)
        machine.submit_self_explanation([0, 2])

        assert recording_client.actions() == [
            "selected Elimination,\nFAILED",
            "selected Substitution,\nSUCCESS",
            "selected 0, 2,\nFAILED",
        ]
        phase_end = next(payload for _, route, payload in recording_client.calls if route == "completePhaseTracking")
        assert phase_end["phase"] == int(FlexibilityExercisePhase.EFFICIENCY_SELECTION)
        assert phase_end["errors"] == 1


class TestMatching:

    def test_systems_are_shuffled_reproducibly(self, matching_exercise):
        first = MatchingExerciseMachine(matching_exercise, rng=random.Random(5))
        second = MatchingExerciseMachine(matching_exercise, rng=random.Random(5))

        assert first.random_order == second.random_order
        assert sorted(first.random_order) == [0, 1, 2]
        assert first.systems[0].is_solution

    def test_selecting_the_exercise_system(self, matching_exercise):
        machine = MatchingExerciseMachine(matching_exercise, rng=random.Random(5))
        wrong = next(position for position, index in enumerate(machine.random_order) if index != 0)

        assert not machine.select_system(wrong)
        assert machine.select_system(machine.random_order.index(0))
        assert machine.screen().intervention_open

    def test_self_explanation_then_transformation(self, matching_exercise):
        machine = MatchingExerciseMachine(matching_exercise, rng=random.Random(5))
        machine.select_system(machine.random_order.index(0))

        machine.answer_intervention(True)
        assert machine.screen().task == matching_exercise.self_explanation_task
        machine.submit_self_explanation([1])
        machine.continue_after_self_explanation()

        assert machine.state == ExerciseState.SYSTEM_TRANSFORMATION
        machine.complete_transformation()
        assert machine.state == ExerciseState.EQUALIZATION_METHOD

    def test_whole_exercise(self, matching_exercise):
        goals = GoalStore()
        machine = MatchingExerciseMachine(matching_exercise, rng=random.Random(5), goals=goals)
        machine.select_system(machine.random_order.index(0))
        machine.answer_intervention(False)
        machine.complete_transformation()
        # x + 2 = 3x - 4
        machine.complete_equalization(equation([(1, "x"), (2, "")], [(3, "x"), (-4, "")]))
        solve_both_variables(machine, "5")

        machine.finish()

        assert machine.is_finished
        assert goals.streaks[Route.FLEXIBILITY_TRAINING] == 1

    def test_tracked_failure_names_the_system(self, matching_exercise, recording_client, study_user):
        tracker = _tracker(
            recording_client, study_user, matching_exercise,
            FlexibilityStudyExerciseType.MATCHING, FlexibilityExercisePhase.SYSTEM_SELECTION,
        )
        machine = MatchingExerciseMachine(matching_exercise, tracker=tracker, rng=random.Random(5))
        machine.start()
        position = next(position for position, index in enumerate(machine.random_order) if index != 0)

        machine.select_system(position)

        assert recording_client.actions() == [
            f"selected alternative system {machine.random_order[position]},\nFAILED"
        ]
        assert tracker.errors == 1

    def test_position_out_of_range(self, matching_exercise):
        machine = MatchingExerciseMachine(matching_exercise)

        with pytest.raises(GameError):
            machine.select_system(3)
