"""
State machines of the flexibility exercises.

All three exercise types walk through the same linear continuation once a
method is known:

    SystemTransformation -> <Method>Method -> FirstSolution
        -> EquationSelection -> SecondSolution -> SystemSolution

They differ in how the method is chosen (free choice, efficient choice or
fixed by the exercise) and in what follows the system solution. The
method-application result, i.e. the equation in one variable produced by
the method branch, is threaded through every later state.
"""
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from algespace.core.exceptions import GameError, GameErrorType
from algespace.games.computation import VariableComputation
from algespace.games.expression import InputResult
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
from algespace.schemas.flexibility import (
    ComparisonMethod,
    EfficiencyExercise,
    FlexibilityExerciseBase,
    MatchableSystem,
    MatchingExercise,
    SelfExplanation,
    SuitabilityExercise,
)
from algespace.schemas.math import TOLERANCE, LinearEquation, Variable
from algespace.tracking.tracker import FlexibilityTracker

logger = logging.getLogger(__name__)

System = Tuple[LinearEquation, LinearEquation]


class ExerciseState(str, Enum):
    METHOD_SELECTION = "method-selection"
    SYSTEM_SELECTION = "system-selection"
    SELF_EXPLANATION = "self-explanation"
    SYSTEM_TRANSFORMATION = "system-transformation"
    EQUALIZATION_METHOD = "equalization-method"
    SUBSTITUTION_METHOD = "substitution-method"
    ELIMINATION_METHOD = "elimination-method"
    FIRST_SOLUTION = "first-solution"
    EQUATION_SELECTION = "equation-selection"
    SECOND_SOLUTION = "second-solution"
    SYSTEM_SOLUTION = "system-solution"
    COMPARISON = "comparison"
    SYSTEM_TRANSFORMATION_ON_RESOLVE = "system-transformation-on-resolve"
    RESOLVE_WITH_EQUALIZATION_METHOD = "resolve-with-equalization-method"
    RESOLVE_WITH_SUBSTITUTION_METHOD = "resolve-with-substitution-method"
    RESOLVE_WITH_ELIMINATION_METHOD = "resolve-with-elimination-method"
    RESOLVE_CONCLUSION = "resolve-conclusion"
    END = "end"


METHOD_STATES = {
    Method.EQUALIZATION: ExerciseState.EQUALIZATION_METHOD,
    Method.SUBSTITUTION: ExerciseState.SUBSTITUTION_METHOD,
    Method.ELIMINATION: ExerciseState.ELIMINATION_METHOD,
}

RESOLVE_STATES = {
    Method.EQUALIZATION: ExerciseState.RESOLVE_WITH_EQUALIZATION_METHOD,
    Method.SUBSTITUTION: ExerciseState.RESOLVE_WITH_SUBSTITUTION_METHOD,
    Method.ELIMINATION: ExerciseState.RESOLVE_WITH_ELIMINATION_METHOD,
}

METHOD_PHASES = {
    Method.EQUALIZATION: FlexibilityExercisePhase.EQUALIZATION,
    Method.SUBSTITUTION: FlexibilityExercisePhase.SUBSTITUTION,
    Method.ELIMINATION: FlexibilityExercisePhase.ELIMINATION,
}

RESOLVE_PHASES = {
    Method.EQUALIZATION: FlexibilityExercisePhase.EQUALIZATION_RESOLVE,
    Method.SUBSTITUTION: FlexibilityExercisePhase.SUBSTITUTION_RESOLVE,
    Method.ELIMINATION: FlexibilityExercisePhase.ELIMINATION_RESOLVE,
}

METHOD_ACTION_PHASES = {
    Method.EQUALIZATION: FlexibilityExerciseActionPhase.EQUALIZATION_ACTIONS,
    Method.SUBSTITUTION: FlexibilityExerciseActionPhase.SUBSTITUTION_ACTIONS,
    Method.ELIMINATION: FlexibilityExerciseActionPhase.ELIMINATION_ACTIONS,
}

# Column that collects free-text actions of the sub-screens in each state
STATE_ACTION_PHASES = {
    ExerciseState.SELF_EXPLANATION: FlexibilityExerciseActionPhase.SELF_EXPLANATION_ACTIONS,
    ExerciseState.SYSTEM_TRANSFORMATION: FlexibilityExerciseActionPhase.TRANSFORMATION_ACTIONS,
    ExerciseState.SYSTEM_TRANSFORMATION_ON_RESOLVE: FlexibilityExerciseActionPhase.TRANSFORMATION_ACTIONS,
    ExerciseState.EQUALIZATION_METHOD: FlexibilityExerciseActionPhase.EQUALIZATION_ACTIONS,
    ExerciseState.RESOLVE_WITH_EQUALIZATION_METHOD: FlexibilityExerciseActionPhase.EQUALIZATION_ACTIONS,
    ExerciseState.SUBSTITUTION_METHOD: FlexibilityExerciseActionPhase.SUBSTITUTION_ACTIONS,
    ExerciseState.RESOLVE_WITH_SUBSTITUTION_METHOD: FlexibilityExerciseActionPhase.SUBSTITUTION_ACTIONS,
    ExerciseState.ELIMINATION_METHOD: FlexibilityExerciseActionPhase.ELIMINATION_ACTIONS,
    ExerciseState.RESOLVE_WITH_ELIMINATION_METHOD: FlexibilityExerciseActionPhase.ELIMINATION_ACTIONS,
    ExerciseState.FIRST_SOLUTION: FlexibilityExerciseActionPhase.FIRST_SOLUTION_ACTIONS,
    ExerciseState.SECOND_SOLUTION: FlexibilityExerciseActionPhase.SECOND_SOLUTION_ACTIONS,
}


def choose_agent(condition: AgentCondition, rng: random.Random) -> Optional[AgentType]:
    """Pick the pedagogical agent shown in an agent condition."""
    if condition == AgentCondition.NONE:
        return None
    return rng.choice(list(AgentType))


def transformation_status(isolated: IsolatedIn) -> IsolatedIn:
    """Isolation state of an equation after it was multiplied for elimination."""
    return {
        IsolatedIn.NONE: IsolatedIn.ELIMINATION,
        IsolatedIn.FIRST: IsolatedIn.ELIMINATION_FIRST,
        IsolatedIn.SECOND: IsolatedIn.ELIMINATION_SECOND,
    }.get(isolated, isolated)


@dataclass(frozen=True)
class MethodApplicationResult:
    """Equation in a single variable produced by a method branch."""
    equation: LinearEquation
    contains_first: bool


# Screen payloads: each carries exactly what its screen needs

@dataclass(frozen=True)
class MethodSelectionScreen:
    system: System
    question: Optional[str] = None
    intervention_open: bool = False
    feedback: Optional[str] = None


@dataclass(frozen=True)
class SystemSelectionScreen:
    systems: Tuple[MatchableSystem, ...]
    method: Method
    question: Optional[str] = None
    intervention_open: bool = False


@dataclass(frozen=True)
class SelfExplanationScreen:
    method: Method
    task: SelfExplanation
    system: System


@dataclass(frozen=True)
class TransformationScreen:
    method: Method
    system: System
    isolated_variables: Tuple[IsolatedIn, IsolatedIn]
    resolving: bool = False


@dataclass(frozen=True)
class MethodScreen:
    method: Method
    system: System
    isolated_variables: Tuple[IsolatedIn, IsolatedIn]
    resolving: bool = False


@dataclass(frozen=True)
class SolutionScreen:
    method: Method
    result: MethodApplicationResult
    variable: Variable
    computation_state: str
    selected_equation: Optional[LinearEquation] = None
    agent_message: Optional[str] = None


@dataclass(frozen=True)
class EquationSelectionScreen:
    method: Method
    result: MethodApplicationResult
    first_solution_variable: Variable
    other_variable: Variable
    options: Dict[SelectedEquation, LinearEquation] = field(default_factory=dict)


@dataclass(frozen=True)
class SystemSolutionScreen:
    method: Method
    result: MethodApplicationResult
    selected_equation: LinearEquation
    first_solution_variable: Variable
    other_variable: Variable
    compare_methods: Optional[bool] = None
    comparison_method: Optional[Method] = None
    agent_message: Optional[str] = None


@dataclass(frozen=True)
class ComparisonScreen:
    selected_method: Method
    comparison: ComparisonMethod
    result: MethodApplicationResult
    selected_equation: LinearEquation
    transformation_info: Tuple[IsolatedIn, IsolatedIn]


@dataclass(frozen=True)
class ResolveConclusionScreen:
    first_method: Method
    second_method: Method
    system: System


@dataclass(frozen=True)
class EndScreen:
    exercise_id: int


class FlexibilityExerciseMachine:
    """
    Shared states and transitions of the flexibility exercises.

    Args:
        exercise: Exercise definition
        tracker: Tracking hook, a disabled one when omitted
        flexibility_id: Position of the exercise in a study, defaults to the exercise ID
        study_id: Study the attempt belongs to, None outside studies
        agent_condition: Whether (and which kind of) agent accompanies the exercise
        agent_type: Agent to show; chosen with `rng` when the condition asks for one
        goals: Goal store updated when the exercise ends
        on_complete: Called with the flexibility ID when the exercise ends
        rng: Random source for the agent and the order of matchable systems
    """

    initial_state = ExerciseState.METHOD_SELECTION
    initial_phase = FlexibilityExercisePhase.TRANSFORMATION
    study_exercise_type: FlexibilityStudyExerciseType

    def __init__(
        self,
        exercise: FlexibilityExerciseBase,
        tracker: Optional[FlexibilityTracker] = None,
        flexibility_id: Optional[int] = None,
        study_id: Optional[int] = None,
        agent_condition: AgentCondition = AgentCondition.NONE,
        agent_type: Optional[AgentType] = None,
        goals: Optional[GoalStore] = None,
        on_complete: Optional[Callable[[int], None]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.exercise = exercise
        self.flexibility_id = flexibility_id if flexibility_id is not None else exercise.id
        self.study_id = study_id
        self.rng = rng or random.Random()
        self.agent_condition = agent_condition
        self.agent_type = agent_type if agent_type is not None else choose_agent(agent_condition, self.rng)
        self.tracker = tracker or FlexibilityTracker(
            None, False, None, study_id, self.flexibility_id, exercise.id, self.study_exercise_type,
            agent_condition, self.agent_type, initial_phase=self.initial_phase,
        )
        self.goals = goals
        self.on_complete = on_complete

        self.state = self.initial_state
        self.selected_method: Optional[Method] = None
        self.transformed_system: Optional[System] = None
        self.isolated_variables: Tuple[IsolatedIn, IsolatedIn] = self.initial_isolated_variables
        self.transformation_info: Tuple[IsolatedIn, IsolatedIn] = (IsolatedIn.NONE, IsolatedIn.NONE)
        self.method_application_result: Optional[MethodApplicationResult] = None
        self.selected_equation: Optional[Tuple[LinearEquation, SelectedEquation]] = None
        self.computation: Optional[VariableComputation] = None

    @property
    def initial_system(self) -> System:
        return self.exercise.first_equation, self.exercise.second_equation

    @property
    def initial_isolated_variables(self) -> Tuple[IsolatedIn, IsolatedIn]:
        return self.exercise.first_equation_is_isolated_in, self.exercise.second_equation_is_isolated_in

    @property
    def is_finished(self) -> bool:
        return self.state == ExerciseState.END

    def start(self) -> None:
        self.tracker.start()

    def _require(self, *states: ExerciseState) -> None:
        if self.state not in states:
            raise GameError(
                GameErrorType.GAME_LOGIC_ERROR,
                f"Operation not allowed in state {self.state.value} of exercise {self.exercise.id}",
            )

    def _require_method(self) -> Method:
        if self.selected_method is None:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, "No method selected")
        return self.selected_method

    def _require_result(self) -> MethodApplicationResult:
        if self.method_application_result is None:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, "No method application result")
        return self.method_application_result

    def _require_selected_equation(self) -> Tuple[LinearEquation, SelectedEquation]:
        if self.selected_equation is None:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, "No equation selected")
        return self.selected_equation

    def _agent_message(self, message: Optional[str]) -> Optional[str]:
        return message if self.agent_condition == AgentCondition.MOTIVATIONAL_AGENT else None

    def solution_variables(self) -> Tuple[Variable, Variable]:
        """Variable computed first and the other one."""
        result = self._require_result()
        if result.contains_first:
            return self.exercise.first_variable, self.exercise.second_variable
        return self.exercise.second_variable, self.exercise.first_variable

    # Tracking passthrough for the sub-screens of the current state

    def track_action(self, action: str) -> None:
        action_phase = STATE_ACTION_PHASES.get(self.state)
        if action_phase is None:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"No actions are tracked in state {self.state.value}")
        self.tracker.track_action(action, action_phase)

    def track_error(self) -> None:
        self.tracker.track_error()

    # Transformation and method branches

    def _enter_method_branch(self, method: Method) -> None:
        self.tracker.set_next_phase(METHOD_PHASES[method])
        self.state = METHOD_STATES[method]

    def complete_transformation(
        self,
        transformed_system: Optional[System] = None,
        isolated_variables: Optional[Tuple[IsolatedIn, IsolatedIn]] = None,
        transformation_info: Optional[Tuple[IsolatedIn, IsolatedIn]] = None,
    ) -> None:
        """Leave the transformation screen towards the branch of the selected method."""
        self._require(ExerciseState.SYSTEM_TRANSFORMATION)
        method = self._require_method()
        self.transformed_system = transformed_system
        if isolated_variables is not None:
            self.isolated_variables = isolated_variables
        if transformation_info is not None:
            self.transformation_info = transformation_info
        self._enter_method_branch(method)

    def _check_result(self, result: MethodApplicationResult) -> None:
        equation = result.equation
        remaining = {name for name in equation.variables() if abs(equation.coefficient_of(name)) > TOLERANCE}
        expected = self.exercise.first_variable if result.contains_first else self.exercise.second_variable
        if remaining != {expected.name}:
            raise GameError(
                GameErrorType.GAME_LOGIC_ERROR,
                f"Method result should only contain {expected.name}, found {sorted(remaining)}",
            )

    def _method_completed(self, result: MethodApplicationResult) -> None:
        self._check_result(result)
        self.tracker.set_next_phase(FlexibilityExercisePhase.FIRST_SOLUTION)
        self.method_application_result = result
        first_variable, _ = self.solution_variables()
        self.computation = VariableComputation(
            first_variable,
            lambda action: self.tracker.track_action(action, FlexibilityExerciseActionPhase.FIRST_SOLUTION_ACTIONS),
            self.tracker.track_error,
            lambda choice: self.tracker.track_choice(choice, FlexibilityExerciseChoicePhase.FIRST_SOLUTION_CHOICE),
            self._first_solution_done,
        )
        self.state = ExerciseState.FIRST_SOLUTION

    def complete_equalization(self, equation: LinearEquation) -> None:
        """
        Finish the equalization branch with the equated right-hand sides.

        Which variable remains follows from where the equations were isolated.
        """
        self._require(ExerciseState.EQUALIZATION_METHOD)
        contains_first = self.isolated_variables[0] not in (IsolatedIn.FIRST, IsolatedIn.FIRST_MULTIPLE)
        self._method_completed(MethodApplicationResult(equation, contains_first))

    def complete_substitution(self, equation: LinearEquation, contains_first: bool) -> None:
        self._require(ExerciseState.SUBSTITUTION_METHOD)
        self._method_completed(MethodApplicationResult(equation, contains_first))

    def complete_elimination(
        self,
        equation: LinearEquation,
        contains_first: bool,
        first_multiplied: Optional[LinearEquation] = None,
        second_multiplied: Optional[LinearEquation] = None,
    ) -> None:
        """
        Finish the elimination branch.

        Equations multiplied before adding them replace their counterparts in
        the transformed system.
        """
        self._require(ExerciseState.ELIMINATION_METHOD)
        first, second = self.transformed_system or self.initial_system
        first_status, second_status = self.transformation_info
        if first_multiplied is not None:
            first, first_status = first_multiplied, transformation_status(first_status)
        if second_multiplied is not None:
            second, second_status = second_multiplied, transformation_status(second_status)
        if first_multiplied is not None or second_multiplied is not None:
            self.transformed_system = (first, second)
            self.transformation_info = (first_status, second_status)
        self._method_completed(MethodApplicationResult(equation, contains_first))

    # First and second solution

    def _require_computation(self) -> VariableComputation:
        self._require(ExerciseState.FIRST_SOLUTION, ExerciseState.SECOND_SOLUTION)
        if self.computation is None:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, "No variable computation in progress")
        return self.computation

    def decide_computation(self, compute_manually: bool) -> None:
        self._require_computation().decide(compute_manually)

    def submit_solution(self, text: str) -> InputResult:
        return self._require_computation().submit(text)

    def show_solution(self) -> None:
        self._require_computation().show_solution()

    def continue_after_solution(self) -> None:
        self._require_computation().proceed()

    def _first_solution_done(self) -> None:
        self.tracker.end_phase()
        self.computation = None
        self.state = ExerciseState.EQUATION_SELECTION

    def equation_options(self) -> Dict[SelectedEquation, LinearEquation]:
        options = {
            SelectedEquation.FIRST_INITIAL: self.exercise.first_equation,
            SelectedEquation.SECOND_INITIAL: self.exercise.second_equation,
        }
        if self.transformed_system is not None:
            options[SelectedEquation.FIRST_TRANSFORMED] = self.transformed_system[0]
            options[SelectedEquation.SECOND_TRANSFORMED] = self.transformed_system[1]
        return options

    def select_equation(self, selected: SelectedEquation) -> None:
        """Choose the equation in which the first value is substituted."""
        self._require(ExerciseState.EQUATION_SELECTION)
        self._require_method()
        options = self.equation_options()
        if selected not in options:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"No transformed system for {selected.label}")

        self.tracker.track_action(selected.label, FlexibilityExerciseActionPhase.EQUATION_SELECTION)
        self.tracker.set_next_phase(FlexibilityExercisePhase.SECOND_SOLUTION)
        self.selected_equation = (options[selected], selected)
        _, other_variable = self.solution_variables()
        self.computation = VariableComputation(
            other_variable,
            lambda action: self.tracker.track_action(action, FlexibilityExerciseActionPhase.SECOND_SOLUTION_ACTIONS),
            self.tracker.track_error,
            lambda choice: self.tracker.track_choice(choice, FlexibilityExerciseChoicePhase.SECOND_SOLUTION_CHOICE),
            self._second_solution_done,
        )
        self.state = ExerciseState.SECOND_SOLUTION

    def _second_solution_done(self) -> None:
        self.tracker.end_phase()
        self.computation = None
        self.state = ExerciseState.SYSTEM_SOLUTION

    def finish(self) -> None:
        """Leave the system solution screen; ends the exercise."""
        self._require(ExerciseState.SYSTEM_SOLUTION)
        self.tracker.end()
        self._handle_exercise_end()

    def _handle_exercise_end(self) -> None:
        self.state = ExerciseState.END
        if self.goals is not None:
            if self.study_id is not None:
                self.goals.complete_study_exercise(self.study_id, self.flexibility_id)
            else:
                self.goals.record_correct(Route.FLEXIBILITY_TRAINING, self.flexibility_id)
        if self.on_complete is not None:
            self.on_complete(self.flexibility_id)
        logger.info(f"Flexibility exercise {self.flexibility_id} finished")

    # Screens

    def _screen_handlers(self) -> Dict[ExerciseState, Callable[[], object]]:
        return {
            ExerciseState.SYSTEM_TRANSFORMATION: self._transformation_screen,
            ExerciseState.EQUALIZATION_METHOD: self._method_screen,
            ExerciseState.SUBSTITUTION_METHOD: self._method_screen,
            ExerciseState.ELIMINATION_METHOD: self._method_screen,
            ExerciseState.FIRST_SOLUTION: self._first_solution_screen,
            ExerciseState.EQUATION_SELECTION: self._equation_selection_screen,
            ExerciseState.SECOND_SOLUTION: self._second_solution_screen,
            ExerciseState.SYSTEM_SOLUTION: self._system_solution_screen,
            ExerciseState.END: lambda: EndScreen(self.flexibility_id),
        }

    def screen(self):
        """Payload of the screen for the current state."""
        handler = self._screen_handlers().get(self.state)
        if handler is None:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"No screen for state {self.state.value}")
        return handler()

    def _transformation_screen(self) -> TransformationScreen:
        return TransformationScreen(self._require_method(), self.initial_system, self.isolated_variables)

    def _method_screen(self) -> MethodScreen:
        return MethodScreen(
            self._require_method(), self.transformed_system or self.initial_system, self.isolated_variables
        )

    def _first_solution_screen(self) -> SolutionScreen:
        method = self._require_method()
        computation = self._require_computation()
        return SolutionScreen(
            method, self._require_result(), computation.variable, computation.state.value,
            agent_message=self._agent_message(self.exercise.agent_message_for_first_solution),
        )

    def _equation_selection_screen(self) -> EquationSelectionScreen:
        method = self._require_method()
        first_variable, other_variable = self.solution_variables()
        return EquationSelectionScreen(
            method, self._require_result(), first_variable, other_variable, self.equation_options()
        )

    def _second_solution_screen(self) -> SolutionScreen:
        method = self._require_method()
        selected_equation, _ = self._require_selected_equation()
        computation = self._require_computation()
        return SolutionScreen(
            method, self._require_result(), computation.variable, computation.state.value,
            selected_equation=selected_equation,
            agent_message=self._agent_message(self.exercise.agent_message_for_second_solution),
        )

    def _system_solution_screen(self) -> SystemSolutionScreen:
        method = self._require_method()
        selected_equation, _ = self._require_selected_equation()
        first_variable, other_variable = self.solution_variables()
        return SystemSolutionScreen(method, self._require_result(), selected_equation, first_variable, other_variable)


class SuitabilityExerciseMachine(FlexibilityExerciseMachine):
    """
    Free method choice. After the system is solved the learner either
    compares the method with another suitable one, or, when the chosen
    method is not suitable, is asked to solve the system again with a
    suitable method.
    """

    study_exercise_type = FlexibilityStudyExerciseType.SUITABILITY
    exercise: SuitabilityExercise

    def __init__(self, exercise: SuitabilityExercise, **kwargs):
        super().__init__(exercise, **kwargs)
        self.comparison_method: Optional[Method] = None
        self.second_transformed_system: Optional[System] = None

    def select_method(self, method: Method) -> None:
        self._require(ExerciseState.METHOD_SELECTION)
        self.tracker.track_action(method.label, FlexibilityExerciseActionPhase.SELECTED_METHOD)
        self.tracker.initialize_phase(FlexibilityExercisePhase.TRANSFORMATION)
        self.selected_method = method
        self.state = ExerciseState.SYSTEM_TRANSFORMATION

    @property
    def compare_methods(self) -> bool:
        return self._require_method() in self.exercise.suitable_methods

    def finish(self) -> None:
        # The system solution only leads on through decide_intervention
        raise GameError(
            GameErrorType.GAME_LOGIC_ERROR,
            "A suitability exercise ends after the comparison or resolving decision",
        )

    def determine_comparison_method(self) -> Method:
        """
        Method offered after the system solution.

        A suitable choice is compared with the first other method that has
        comparison steps; otherwise the first suitable method is used to
        solve the system again.
        """
        selected = self._require_method()
        if self.compare_methods:
            candidates = [comparison.method for comparison in self.exercise.comparison_methods if comparison.method != selected]
            if not candidates:
                raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"No method to compare with {selected.label}")
            return candidates[0]
        return self.exercise.suitable_methods[0]

    def decide_intervention(self, compliance: bool) -> None:
        """Accept or refuse the comparison / resolving offered after the system solution."""
        self._require(ExerciseState.SYSTEM_SOLUTION)
        self._require_result()
        self._require_selected_equation()
        compare = self.compare_methods
        comparison_method = self.determine_comparison_method()
        choice_phase = FlexibilityExerciseChoicePhase.COMPARISON_CHOICE if compare else FlexibilityExerciseChoicePhase.RESOLVING_CHOICE

        if not compliance:
            self.tracker.track_choice(f"No to {comparison_method.label}", choice_phase)
            self.tracker.end_phase()
            self._handle_exercise_end()
            return

        self.comparison_method = comparison_method
        self.isolated_variables = self.initial_isolated_variables
        self.tracker.track_choice(f"Yes to {comparison_method.label}", choice_phase)
        if compare:
            self.tracker.initialize_phase(FlexibilityExercisePhase.COMPARISON)
            self.tracker.track_action("RESOLVE", FlexibilityExerciseActionPhase.TRANSFORMATION_ACTIONS)
            self.state = ExerciseState.COMPARISON
        else:
            self.tracker.initialize_phase(FlexibilityExercisePhase.TRANSFORMATION_RESOLVE)
            self.tracker.track_action("RESOLVE", FlexibilityExerciseActionPhase.TRANSFORMATION_ACTIONS)
            self.state = ExerciseState.SYSTEM_TRANSFORMATION_ON_RESOLVE

    def _require_comparison_method(self) -> Method:
        if self.comparison_method is None:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, "No comparison method")
        return self.comparison_method

    def complete_resolve_transformation(
        self,
        transformed_system: Optional[System] = None,
        isolated_variables: Optional[Tuple[IsolatedIn, IsolatedIn]] = None,
    ) -> None:
        self._require(ExerciseState.SYSTEM_TRANSFORMATION_ON_RESOLVE)
        method = self._require_comparison_method()
        self.second_transformed_system = transformed_system
        if isolated_variables is not None:
            self.isolated_variables = isolated_variables
        self.tracker.set_next_phase(RESOLVE_PHASES[method])
        self.tracker.track_action("RESOLVE", METHOD_ACTION_PHASES[method])
        self.state = RESOLVE_STATES[method]

    def complete_resolve(self) -> None:
        """Finish solving the system again with the comparison method."""
        self._require(*RESOLVE_STATES.values())
        self.tracker.set_next_phase(FlexibilityExercisePhase.RESOLVE_CONCLUSION)
        self.state = ExerciseState.RESOLVE_CONCLUSION

    def conclude(self, choice: str) -> None:
        """Record which method the learner prefers and end the exercise."""
        self._require(ExerciseState.COMPARISON, ExerciseState.RESOLVE_CONCLUSION)
        self.tracker.end_phase(choice)
        self.tracker.end()
        self._handle_exercise_end()

    def find_comparison(self) -> ComparisonMethod:
        method = self._require_comparison_method()
        for comparison in self.exercise.comparison_methods:
            if comparison.method == method:
                return comparison
        raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"No comparison steps for {method.label}")

    def _screen_handlers(self) -> Dict[ExerciseState, Callable[[], object]]:
        handlers = super()._screen_handlers()
        handlers.update({
            ExerciseState.METHOD_SELECTION: lambda: MethodSelectionScreen(self.initial_system),
            ExerciseState.COMPARISON: self._comparison_screen,
            ExerciseState.SYSTEM_TRANSFORMATION_ON_RESOLVE: self._resolve_transformation_screen,
            ExerciseState.RESOLVE_WITH_EQUALIZATION_METHOD: self._resolve_method_screen,
            ExerciseState.RESOLVE_WITH_SUBSTITUTION_METHOD: self._resolve_method_screen,
            ExerciseState.RESOLVE_WITH_ELIMINATION_METHOD: self._resolve_method_screen,
            ExerciseState.RESOLVE_CONCLUSION: self._resolve_conclusion_screen,
        })
        return handlers

    def _system_solution_screen(self) -> SystemSolutionScreen:
        screen = super()._system_solution_screen()
        compare = self.compare_methods
        message = self.exercise.agent_message_for_comparison if compare else self.exercise.agent_message_for_resolving
        return SystemSolutionScreen(
            screen.method, screen.result, screen.selected_equation, screen.first_solution_variable,
            screen.other_variable, compare_methods=compare,
            comparison_method=self.determine_comparison_method(),
            agent_message=self._agent_message(message),
        )

    def _comparison_screen(self) -> ComparisonScreen:
        method = self._require_method()
        result = self._require_result()
        selected_equation, _ = self._require_selected_equation()
        return ComparisonScreen(method, self.find_comparison(), result, selected_equation, self.transformation_info)

    def _resolve_transformation_screen(self) -> TransformationScreen:
        return TransformationScreen(
            self._require_comparison_method(), self.initial_system, self.isolated_variables, resolving=True
        )

    def _resolve_method_screen(self) -> MethodScreen:
        return MethodScreen(
            self._require_comparison_method(),
            self.second_transformed_system or self.initial_system,
            self.isolated_variables,
            resolving=True,
        )

    def _resolve_conclusion_screen(self) -> ResolveConclusionScreen:
        return ResolveConclusionScreen(self._require_method(), self._require_comparison_method(), self.initial_system)


class SelfExplanationMixin:
    """Answering a self-explanation task; correctness is tracked but not required to continue."""

    def _self_explanation_task(self) -> SelfExplanation:
        raise NotImplementedError

    def submit_self_explanation(self, selected_options: Sequence[int]) -> bool:
        self._require(ExerciseState.SELF_EXPLANATION)
        task = self._self_explanation_task()
        correct = sorted(set(selected_options)) == sorted(task.correct_options)
        options = ", ".join(str(option) for option in sorted(set(selected_options)))
        if correct:
            self.tracker.track_action(f"selected {options},\nSUCCESS", FlexibilityExerciseActionPhase.SELF_EXPLANATION_ACTIONS)
        else:
            self.tracker.track_action(f"selected {options},\nFAILED", FlexibilityExerciseActionPhase.SELF_EXPLANATION_ACTIONS)
            self.tracker.track_error()
        return correct


class EfficiencyExerciseMachine(SelfExplanationMixin, FlexibilityExerciseMachine):
    """The learner must pick one of the efficient methods."""

    initial_phase = FlexibilityExercisePhase.EFFICIENCY_SELECTION
    study_exercise_type = FlexibilityStudyExerciseType.EFFICIENCY
    exercise: EfficiencyExercise

    def __init__(self, exercise: EfficiencyExercise, **kwargs):
        super().__init__(exercise, **kwargs)
        self.intervention_open = False
        self.feedback: Optional[str] = None

    @staticmethod
    def feedback_for(method: Method, transformation_required: bool) -> str:
        """Translation key explaining why a method is not efficient."""
        key = f"{method.name}_NOT_EFFICIENT"
        return f"{key}_NO_TRANSFORMATION" if transformation_required else key

    def select_method(self, method: Method) -> bool:
        """
        Check the chosen method; an efficient one opens the self-explanation
        intervention.
        """
        self._require(ExerciseState.METHOD_SELECTION)
        if self.intervention_open:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, "Method already selected")

        self.selected_method = method
        if method in self.exercise.efficient_methods:
            self.tracker.track_action(f"selected {method.label},\nSUCCESS", FlexibilityExerciseActionPhase.EFFICIENCY_SELECTION_ACTIONS)
            self.feedback = None
            self.intervention_open = True
            return True

        self.tracker.track_action(f"selected {method.label},\nFAILED", FlexibilityExerciseActionPhase.EFFICIENCY_SELECTION_ACTIONS)
        self.tracker.track_error()
        self.feedback = self.feedback_for(method, self.exercise.transformation_required)
        return False

    def answer_intervention(self, self_explain: bool) -> None:
        self._require(ExerciseState.METHOD_SELECTION)
        if not self.intervention_open:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, "No efficient method selected")
        self.tracker.track_choice("Yes" if self_explain else "No", FlexibilityExerciseChoicePhase.SELF_EXPLANATION_CHOICE)
        self.intervention_open = False
        method = self._require_method()

        if self_explain:
            self.tracker.set_next_phase(FlexibilityExercisePhase.SELF_EXPLANATION)
            self.state = ExerciseState.SELF_EXPLANATION
        else:
            self._continue_with(method)

    def _continue_with(self, method: Method) -> None:
        if self.exercise.transformation_required:
            self.tracker.set_next_phase(FlexibilityExercisePhase.TRANSFORMATION)
            self.state = ExerciseState.SYSTEM_TRANSFORMATION
        else:
            self._enter_method_branch(method)

    def _self_explanation_task(self) -> SelfExplanation:
        method = self._require_method()
        for task in self.exercise.self_explanation_tasks:
            if task.method == method:
                return task
        raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"No self-explanation task for {method.label}")

    def continue_after_self_explanation(self) -> None:
        self._require(ExerciseState.SELF_EXPLANATION)
        self._continue_with(self._require_method())

    def _screen_handlers(self) -> Dict[ExerciseState, Callable[[], object]]:
        handlers = super()._screen_handlers()
        handlers.update({
            ExerciseState.METHOD_SELECTION: lambda: MethodSelectionScreen(
                self.initial_system, self.exercise.question, self.intervention_open, self.feedback
            ),
            ExerciseState.SELF_EXPLANATION: lambda: SelfExplanationScreen(
                self._require_method(), self._self_explanation_task(), self.initial_system
            ),
        })
        return handlers


class MatchingExerciseMachine(SelfExplanationMixin, FlexibilityExerciseMachine):
    """
    The method is fixed; the learner picks the system that suits it best
    among shuffled alternatives. System 0 is the exercise's own system.
    """

    initial_state = ExerciseState.SYSTEM_SELECTION
    initial_phase = FlexibilityExercisePhase.SYSTEM_SELECTION
    study_exercise_type = FlexibilityStudyExerciseType.MATCHING
    exercise: MatchingExercise

    def __init__(self, exercise: MatchingExercise, **kwargs):
        super().__init__(exercise, **kwargs)
        self.selected_method = exercise.method
        self.systems: List[MatchableSystem] = [
            MatchableSystem(first_equation=exercise.first_equation, second_equation=exercise.second_equation, is_solution=True),
            *exercise.alternative_systems,
        ]
        self.random_order = list(range(len(self.systems)))
        self.rng.shuffle(self.random_order)
        self.intervention_open = False

    def select_system(self, option: int) -> bool:
        """Pick the system shown at position `option`."""
        self._require(ExerciseState.SYSTEM_SELECTION)
        if not 0 <= option < len(self.random_order):
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"No system at position {option}")

        system_index = self.random_order[option]
        if self.systems[system_index].is_solution:
            self.tracker.track_action("SUCCESS", FlexibilityExerciseActionPhase.SYSTEM_MATCHING_ACTIONS)
            self.intervention_open = True
            return True

        self.tracker.track_action(
            f"selected alternative system {system_index},\nFAILED", FlexibilityExerciseActionPhase.SYSTEM_MATCHING_ACTIONS
        )
        self.tracker.track_error()
        return False

    def answer_intervention(self, self_explain: bool) -> None:
        self._require(ExerciseState.SYSTEM_SELECTION)
        if not self.intervention_open:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, "No system selected")
        self.tracker.track_choice("Yes" if self_explain else "No", FlexibilityExerciseChoicePhase.SELF_EXPLANATION_CHOICE)
        self.intervention_open = False
        if self_explain:
            self.tracker.set_next_phase(FlexibilityExercisePhase.SELF_EXPLANATION)
            self.state = ExerciseState.SELF_EXPLANATION
        else:
            self.tracker.set_next_phase(FlexibilityExercisePhase.TRANSFORMATION)
            self.state = ExerciseState.SYSTEM_TRANSFORMATION

    def _self_explanation_task(self) -> SelfExplanation:
        if self.exercise.self_explanation_task is None:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"Exercise {self.exercise.id} has no self-explanation task")
        return self.exercise.self_explanation_task

    def continue_after_self_explanation(self) -> None:
        self._require(ExerciseState.SELF_EXPLANATION)
        self.tracker.set_next_phase(FlexibilityExercisePhase.TRANSFORMATION)
        self.state = ExerciseState.SYSTEM_TRANSFORMATION

    def _screen_handlers(self) -> Dict[ExerciseState, Callable[[], object]]:
        handlers = super()._screen_handlers()
        handlers.update({
            ExerciseState.SYSTEM_SELECTION: lambda: SystemSelectionScreen(
                tuple(self.systems[index] for index in self.random_order),
                self.exercise.method, self.exercise.question, self.intervention_open,
            ),
            ExerciseState.SELF_EXPLANATION: lambda: SelfExplanationScreen(
                self.exercise.method, self._self_explanation_task(), self.initial_system
            ),
        })
        return handlers
