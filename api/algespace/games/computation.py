"""
Computing one variable of a flexibility exercise.

Used for the first and the second solution: the user is asked whether to
compute the value manually; otherwise the value is shown.
"""
import logging
from enum import Enum
from typing import Callable

from algespace.core.exceptions import GameError, GameErrorType
from algespace.games.expression import InputResult, check_answer
from algespace.schemas.math import Variable

logger = logging.getLogger(__name__)


class ComputationState(str, Enum):
    INTERVENTION = "intervention"
    MANUAL_COMPUTATION = "manual-computation"
    RESULT_MANUAL = "result-manual"
    RESULT_AUTO = "result-auto"


class VariableComputation:
    """
    Sub-machine for the value of a single variable.

    The tracking callbacks are already bound to the phase of the caller.
    """

    def __init__(
        self,
        variable: Variable,
        track_action: Callable[[str], None],
        track_error: Callable[[], None],
        track_choice: Callable[[str], None],
        load_next_step: Callable[[], None],
    ):
        self.variable = variable
        self.track_action = track_action
        self.track_error = track_error
        self.track_choice = track_choice
        self.load_next_step = load_next_step
        self.state = ComputationState.INTERVENTION

    def _require(self, *states: ComputationState) -> None:
        if self.state not in states:
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"Computation of {self.variable.name} is in state {self.state.value}")

    def decide(self, compute_manually: bool) -> None:
        self._require(ComputationState.INTERVENTION)
        if compute_manually:
            self.track_choice("Yes")
            self.state = ComputationState.MANUAL_COMPUTATION
        else:
            self.track_choice("No")
            self.state = ComputationState.RESULT_AUTO

    def submit(self, text: str) -> InputResult:
        """Check a typed value; integers, fractions and simple arithmetic are accepted."""
        self._require(ComputationState.MANUAL_COMPUTATION)
        text = text.strip()
        result = check_answer(text, self.variable.value)
        if result == InputResult.VALIDATION_ERROR:
            return result
        if result == InputResult.INCORRECT:
            self.track_action(f"{self.variable.name}={text},\nFAILED")
            self.track_error()
            return result

        self.track_action(f"{self.variable.name}={text},\nSUCCESS")
        self.state = ComputationState.RESULT_MANUAL
        return result

    def show_solution(self) -> None:
        self._require(ComputationState.MANUAL_COMPUTATION)
        self.track_action("SHOW solution")
        self.state = ComputationState.RESULT_AUTO

    def proceed(self) -> None:
        self._require(ComputationState.RESULT_MANUAL, ComputationState.RESULT_AUTO)
        logger.debug(f"Computed {self.variable.name}={self.variable.value} ({self.state.value})")
        self.load_next_step()
