"""
Equalization game: a drag-and-drop balance scale for a system of two
equations that isolate the same variable.

The user puts the right-hand sides of both equations on the two pans of a
balance scale, simplifies the scale, types the weight of the second
variable, and finally weighs the isolated variable on a digital scale.
Every accepted drop produces a new GameState; the states form an
undo/redo history.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple

from algespace.core.config import settings
from algespace.core.exceptions import GameError, GameErrorType
from algespace.games.expression import InputResult, check_answer, is_well_formed
from algespace.models.enums import EqualizationItemType, EqualizationPhase
from algespace.schemas.equalization import EqualizationExercise, EqualizationItem
from algespace.tracking.tracker import CKTracker, StudyUser

logger = logging.getLogger(__name__)


class DragSource(str, Enum):
    """Zones an item can be dragged from or dropped onto."""
    FRUITS_LEFT = "FruitsLeft"
    FRUITS_RIGHT = "FruitsRight"
    WEIGHTS = "Weights"
    BALANCE_SCALE_LEFT = "BalanceScaleLeft"
    BALANCE_SCALE_RIGHT = "BalanceScaleRight"
    DIGITAL_SCALE = "DigitalScale"


PAN_NAMES = {
    DragSource.BALANCE_SCALE_LEFT: "ScaleLeft",
    DragSource.BALANCE_SCALE_RIGHT: "ScaleRight",
    DragSource.DIGITAL_SCALE: "DigitalScale",
}
BALANCE_PANS = (DragSource.BALANCE_SCALE_LEFT, DragSource.BALANCE_SCALE_RIGHT)
SHELVES = (DragSource.FRUITS_LEFT, DragSource.FRUITS_RIGHT, DragSource.WEIGHTS)


class InstructionType(str, Enum):
    FIRST_INSTRUCTION = "first-instruction"
    SCALE_AND_SYSTEM_RELATION = "scale-and-system-relation"
    RELATION_REASON = "relation-reason"
    SIMPLIFICATION = "simplification"
    DETERMINING_SECOND_VARIABLE = "determining-second-variable"
    DETERMINING_ISOLATED_VARIABLE = "determining-isolated-variable"
    SOLUTION = "solution"


class EqualizationGamePhase(str, Enum):
    EQUALIZATION = "equalization"
    SIMPLIFICATION = "simplification"
    SOLVING_SYSTEM = "solving-system"


class Feedback(str, Enum):
    """Why a verification failed."""
    EMPTY_SCALE = "empty-scale"
    ISOLATED_VARIABLE = "isolated-variable"
    SIMPLIFICATION_REQUIRED = "simplification-required"
    INVALID_BALANCE = "invalid-balance"
    IMBALANCE = "imbalance"
    INVALID_WEIGHT = "invalid-weight"


FEEDBACK_ACTIONS = {
    Feedback.EMPTY_SCALE: "ERROR: EMPTY scale",
    Feedback.ISOLATED_VARIABLE: "ERROR: scale contains ISOLATED",
    Feedback.SIMPLIFICATION_REQUIRED: "ERROR: SIMPLIFICATION required",
    Feedback.INVALID_BALANCE: "ERROR: INVALID balance",
    Feedback.IMBALANCE: "ERROR: IMBALANCED scale",
    Feedback.INVALID_WEIGHT: "ERROR: WEIGHT INVALID",
}

# Phases in which items may be moved
DRAGGABLE_INSTRUCTIONS = (
    InstructionType.FIRST_INSTRUCTION,
    InstructionType.SIMPLIFICATION,
    InstructionType.DETERMINING_ISOLATED_VARIABLE,
)


@dataclass(frozen=True)
class GameState:
    """Placement of all items after one accepted action."""
    isolated_variable_count: int
    second_variable_count: int
    weights: Tuple[EqualizationItem, ...]
    left_items: Tuple[EqualizationItem, ...] = ()
    right_items: Tuple[EqualizationItem, ...] = ()

    @classmethod
    def initial(cls, exercise: EqualizationExercise) -> "GameState":
        return cls(
            isolated_variable_count=exercise.isolated_variable.amount,
            second_variable_count=exercise.second_variable.amount,
            weights=tuple(exercise.weights),
        )

    @classmethod
    def for_solving_system(cls, exercise: EqualizationExercise) -> "GameState":
        """Empty scale with every second-variable fruit and weight on the shelves."""
        return cls(
            isolated_variable_count=0,
            second_variable_count=exercise.second_variable.amount,
            weights=tuple(exercise.weights),
        )

    @property
    def left_weight(self) -> int:
        return sum(item.weight for item in self.left_items)

    @property
    def right_weight(self) -> int:
        return sum(item.weight for item in self.right_items)

    def count(self, item_type: EqualizationItemType, pan: Tuple[EqualizationItem, ...]) -> int:
        return sum(1 for item in pan if item.item_type == item_type)

    def totals(self) -> Tuple[int, int, int]:
        """Isolated fruits, second fruits and weights, wherever they are."""
        pans = self.left_items + self.right_items
        return (
            self.isolated_variable_count + self.count(EqualizationItemType.ISOLATED_VARIABLE, pans),
            self.second_variable_count + self.count(EqualizationItemType.SECOND_VARIABLE, pans),
            sum(weight.amount for weight in self.weights) + self.count(EqualizationItemType.WEIGHT, pans),
        )


@dataclass(frozen=True)
class Goal:
    """What the scale has to show for a verification to succeed."""
    game_phase: EqualizationGamePhase
    expected_count_left: int = 0
    expected_count_right: int = 0
    expected_weight: Optional[int] = None

    @classmethod
    def equalization(cls, exercise: EqualizationExercise) -> "Goal":
        return cls(
            EqualizationGamePhase.EQUALIZATION,
            exercise.first_equation.coefficient,
            exercise.second_equation.coefficient,
        )

    @classmethod
    def simplification(cls, exercise: EqualizationExercise) -> "Goal":
        first = exercise.first_equation.coefficient
        second = exercise.second_equation.coefficient
        common = min(first, second)
        return cls(EqualizationGamePhase.SIMPLIFICATION, first - common, second - common)

    @classmethod
    def solving_system(cls, exercise: EqualizationExercise) -> "Goal":
        return cls(EqualizationGamePhase.SOLVING_SYSTEM, expected_weight=exercise.isolated_variable.weight)

    def matches(self, count_left: int, count_right: int) -> bool:
        """Counts match in either orientation of the scale."""
        return (count_left, count_right) in (
            (self.expected_count_left, self.expected_count_right),
            (self.expected_count_right, self.expected_count_left),
        )


class GameHistory:
    """Sequence of game states with a pointer to the current one."""

    def __init__(self, state: GameState):
        self.states: List[GameState] = [state]
        self.index = 0

    @property
    def current(self) -> GameState:
        return self.states[self.index]

    def push(self, state: GameState) -> None:
        # a new action discards the states that could have been redone
        del self.states[self.index + 1:]
        self.states.append(state)
        self.index += 1

    def reset(self, state: GameState) -> None:
        self.states = [state]
        self.index = 0

    def can_undo(self) -> bool:
        return self.index > 0

    def can_redo(self) -> bool:
        return self.index < len(self.states) - 1

    def undo(self) -> bool:
        if not self.can_undo():
            return False
        self.index -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo():
            return False
        self.index += 1
        return True


@dataclass(frozen=True)
class Verification:
    success: bool
    feedback: Optional[Feedback] = None


class EqualizationGame:
    """
    State machine of one equalization exercise attempt.

    Args:
        exercise: Exercise definition
        tracker: Tracking hook, a disabled one when omitted
        is_study: Whether the attempt belongs to a study; then a user and a
            study ID are required
        on_complete: Called with the exercise ID when the user finishes
    """

    def __init__(
        self,
        exercise: EqualizationExercise,
        tracker: Optional[CKTracker] = None,
        is_study: bool = False,
        user: Optional[StudyUser] = None,
        study_id: Optional[int] = None,
        on_complete: Optional[Callable[[int], None]] = None,
        max_items_scale: Optional[int] = None,
        max_items_digital_scale: Optional[int] = None,
    ):
        if is_study and user is None:
            raise GameError(GameErrorType.AUTH_ERROR, "A study attempt needs a signed-in user")
        if is_study and study_id is None:
            raise GameError(GameErrorType.STUDY_ID_ERROR, "A study attempt needs a study ID")

        self.exercise = exercise
        self.tracker = tracker or CKTracker(None, False, user, study_id, exercise.id)
        self.on_complete = on_complete
        self.max_items_scale = exercise.maximum_capacity or max_items_scale or settings.max_items_scale
        self.max_items_digital_scale = max_items_digital_scale or settings.max_items_digital_scale

        self.instruction = InstructionType.FIRST_INSTRUCTION
        self.goal = Goal.equalization(exercise)
        self.history = GameHistory(GameState.initial(exercise))
        self.show_overlay = False
        self.show_hints = True
        self.feedback: Optional[Feedback] = None
        self.completed = False

    @property
    def state(self) -> GameState:
        return self.history.current

    @property
    def hints(self) -> List[str]:
        if not self.show_hints:
            return []
        return {
            InstructionType.FIRST_INSTRUCTION: self.exercise.equalization_hints,
            InstructionType.SIMPLIFICATION: self.exercise.simplification_hints,
            InstructionType.DETERMINING_SECOND_VARIABLE: self.exercise.second_variable_hints,
            InstructionType.DETERMINING_ISOLATED_VARIABLE: self.exercise.isolated_variable_hints,
        }.get(self.instruction, [])

    def start(self) -> None:
        self.tracker.start()

    def _require(self, *instructions: InstructionType) -> None:
        if self.instruction not in instructions:
            raise GameError(
                GameErrorType.GAME_LOGIC_ERROR,
                f"Operation not allowed in phase {self.instruction.value}",
            )

    def _log(self, action: str) -> None:
        logger.debug(f"Exercise {self.exercise.id}: {action}")
        self.tracker.track_action(action)

    def open_hint(self, index: int) -> str:
        """Show a hint of the current phase; opening it is tracked."""
        hints = self.hints
        if not 0 <= index < len(hints):
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"No hint {index} in phase {self.instruction.value}")
        self.tracker.track_hint()
        return hints[index]

    # Drag and drop

    def _scale_zones(self) -> Tuple[DragSource, ...]:
        if self.goal.game_phase == EqualizationGamePhase.SOLVING_SYSTEM:
            return (DragSource.DIGITAL_SCALE,)
        return BALANCE_PANS

    def _drop_zone(self, target: Optional[DragSource]) -> Optional[DragSource]:
        """Targets that are not a scale of the current phase count as outside every zone."""
        return target if target in self._scale_zones() else None

    def _has_space(self, target: DragSource) -> bool:
        if self.goal.game_phase == EqualizationGamePhase.SOLVING_SYSTEM:
            return len(self.state.left_items) < self.max_items_digital_scale
        if target == DragSource.BALANCE_SCALE_LEFT:
            return len(self.state.left_items) < self.max_items_scale
        return len(self.state.right_items) < self.max_items_scale

    def _item_at(self, items: Tuple[EqualizationItem, ...], index: Optional[int]) -> EqualizationItem:
        if index is None or not 0 <= index < len(items):
            raise GameError(GameErrorType.GAME_LOGIC_ERROR, f"No item at position {index}")
        return items[index]

    def _dragged_item(self, source: DragSource, index: Optional[int]) -> EqualizationItem:
        if source == DragSource.FRUITS_LEFT:
            return self.exercise.isolated_variable.to_item(EqualizationItemType.ISOLATED_VARIABLE)
        if source == DragSource.FRUITS_RIGHT:
            return self.exercise.second_variable.to_item(EqualizationItemType.SECOND_VARIABLE)
        if source == DragSource.WEIGHTS:
            return self._item_at(self.state.weights, index).model_copy(update={"amount": 1})
        if source == DragSource.BALANCE_SCALE_RIGHT:
            return self._item_at(self.state.right_items, index)
        return self._item_at(self.state.left_items, index)

    def drag(self, source: DragSource, target: Optional[DragSource], index: Optional[int] = None) -> bool:
        """
        Resolve a drop of the item at `index` of `source` onto `target`.

        A None target means the item was dropped outside every zone. Every
        outcome is tracked; only accepted moves change the state.

        Returns:
            True if a new state was pushed onto the history
        """
        self._require(*DRAGGABLE_INSTRUCTIONS)
        if self.show_overlay:
            return False
        if source not in SHELVES + self._scale_zones():
            raise GameError(
                GameErrorType.GAME_LOGIC_ERROR,
                f"Cannot drag from {source.value} in phase {self.goal.game_phase.value}",
            )

        item = self._dragged_item(source, index)
        if target is not None and target == source:
            balance_pan = PAN_NAMES[source] if source in BALANCE_PANS else ""
            self._log(f"DROP {item.name} at target=source={balance_pan}")
            return False

        target = self._drop_zone(target)
        if source in (DragSource.FRUITS_LEFT, DragSource.FRUITS_RIGHT, DragSource.WEIGHTS):
            new_state = self._drag_from_shelf(source, target, item, index)
        elif source == DragSource.DIGITAL_SCALE:
            new_state = self._return_to_shelf(self.state, item, left_items=_without(self.state.left_items, index))
            self._log(f"REMOVE {item.name} from DigitalScale")
        else:
            new_state = self._drag_from_pan(source, target, item, index)

        if new_state is None:
            return False
        self.history.push(new_state)
        self.feedback = None
        return True

    def _drag_from_shelf(
        self, source: DragSource, target: Optional[DragSource], item: EqualizationItem, index: Optional[int]
    ) -> Optional[GameState]:
        state = self.state
        if target is None:
            self._log(f"DRAG {item.name} from {source.value} to NULL")
            return None
        if not self._has_space(target):
            self._log(f"DROP INVALID at {_zone_name(target)} for dragged {item.name} from {source.value}")
            return None

        if source == DragSource.FRUITS_LEFT:
            if state.isolated_variable_count == 0:
                return None
            state = replace(state, isolated_variable_count=state.isolated_variable_count - 1)
        elif source == DragSource.FRUITS_RIGHT:
            if state.second_variable_count == 0:
                return None
            state = replace(state, second_variable_count=state.second_variable_count - 1)
        else:
            weight = state.weights[index]
            if weight.amount > 1:
                weights = state.weights[:index] + (weight.model_copy(update={"amount": weight.amount - 1}),) + state.weights[index + 1:]
            else:
                weights = _without(state.weights, index)
            state = replace(state, weights=weights)

        self._log(f"DRAG {item.name} from {source.value} to {PAN_NAMES[target]}")
        if target == DragSource.BALANCE_SCALE_RIGHT:
            return replace(state, right_items=state.right_items + (item,))
        return replace(state, left_items=state.left_items + (item,))

    def _drag_from_pan(
        self, source: DragSource, target: Optional[DragSource], item: EqualizationItem, index: int
    ) -> Optional[GameState]:
        state = self.state
        source_name = PAN_NAMES[source]
        if target is not None and not self._has_space(target):
            self._log(f"DROP INVALID at {PAN_NAMES[target]} for dragged {item.name} from {source_name}")
            return None

        if source == DragSource.BALANCE_SCALE_LEFT:
            state = replace(state, left_items=_without(state.left_items, index))
        else:
            state = replace(state, right_items=_without(state.right_items, index))

        if target is None:
            self._log(f"REMOVE {item.name} from {source_name}")
            return self._return_to_shelf(state, item)

        self._log(f"DRAG {item.name} from {source_name} to {PAN_NAMES[target]}")
        if target == DragSource.BALANCE_SCALE_RIGHT:
            return replace(state, right_items=state.right_items + (item,))
        return replace(state, left_items=state.left_items + (item,))

    @staticmethod
    def _return_to_shelf(state: GameState, item: EqualizationItem, **changes) -> GameState:
        state = replace(state, **changes)
        if item.item_type == EqualizationItemType.ISOLATED_VARIABLE:
            return replace(state, isolated_variable_count=state.isolated_variable_count + 1)
        if item.item_type == EqualizationItemType.SECOND_VARIABLE:
            return replace(state, second_variable_count=state.second_variable_count + 1)

        for position, weight in enumerate(state.weights):
            if weight.name == item.name:
                merged = weight.model_copy(update={"amount": weight.amount + 1})
                return replace(state, weights=state.weights[:position] + (merged,) + state.weights[position + 1:])
        return replace(state, weights=state.weights + (item.model_copy(update={"amount": 1}),))

    def undo(self) -> bool:
        self._require(*DRAGGABLE_INSTRUCTIONS)
        self._log("UNDO")
        return self.history.undo()

    def redo(self) -> bool:
        self._require(*DRAGGABLE_INSTRUCTIONS)
        self._log("REDO")
        return self.history.redo()

    # Verification

    def _verify_scale(self, simplification: bool) -> Verification:
        state = self.state
        count_left = state.count(EqualizationItemType.SECOND_VARIABLE, state.left_items)
        count_right = state.count(EqualizationItemType.SECOND_VARIABLE, state.right_items)

        if state.left_weight != state.right_weight:
            feedback = Feedback.IMBALANCE
        elif self.goal.matches(count_left, count_right):
            return Verification(success=True)
        elif state.left_weight == 0:
            feedback = Feedback.EMPTY_SCALE
        elif state.count(EqualizationItemType.ISOLATED_VARIABLE, state.left_items + state.right_items) > 0:
            feedback = Feedback.ISOLATED_VARIABLE
        elif simplification and self._needs_simplification(count_left, count_right):
            feedback = Feedback.SIMPLIFICATION_REQUIRED
        else:
            feedback = Feedback.INVALID_BALANCE
        return self._fail(feedback)

    def _needs_simplification(self, count_left: int, count_right: int) -> bool:
        expected_left, expected_right = self.goal.expected_count_left, self.goal.expected_count_right
        return (count_left >= expected_left and count_right >= expected_right) or (
            count_left >= expected_right and count_right >= expected_left
        )

    def _fail(self, feedback: Feedback) -> Verification:
        self.tracker.track_error()
        self._log(FEEDBACK_ACTIONS[feedback])
        self.feedback = feedback
        return Verification(success=False, feedback=feedback)

    def verify_equalization(self) -> Verification:
        """Check that both right-hand sides are on the scale and it is balanced."""
        self._require(InstructionType.FIRST_INSTRUCTION)
        result = self._verify_scale(simplification=False)
        if result.success:
            self.feedback = None
            self.show_overlay = True
            self.show_hints = False
            self.instruction = InstructionType.SCALE_AND_SYSTEM_RELATION
        return result

    def explain_relation(self) -> None:
        self._require(InstructionType.SCALE_AND_SYSTEM_RELATION)
        self._log("EXPLAIN equalization")
        self.instruction = InstructionType.RELATION_REASON

    def continue_to_simplification(self) -> None:
        self._require(InstructionType.SCALE_AND_SYSTEM_RELATION, InstructionType.RELATION_REASON)
        if self.instruction == InstructionType.SCALE_AND_SYSTEM_RELATION:
            self._log("SKIP equalization explanation")

        self.tracker.set_next_phase(EqualizationPhase.SIMPLIFICATION)
        self.goal = Goal.simplification(self.exercise)
        self.history.reset(self.state)
        self.show_overlay = False
        self.show_hints = True
        self.instruction = InstructionType.SIMPLIFICATION

    def verify_simplification(self) -> Verification:
        self._require(InstructionType.SIMPLIFICATION)
        result = self._verify_scale(simplification=True)
        if result.success:
            self.feedback = None
            self.tracker.set_next_phase(EqualizationPhase.FIRST_SOLUTION)
            self.show_overlay = True
            self.instruction = InstructionType.DETERMINING_SECOND_VARIABLE
        return result

    def submit_second_variable(self, text: str) -> InputResult:
        """
        Check the typed weight of the second variable.

        Malformed text is rejected without counting an error; an expression
        that cannot be evaluated or has another value is counted.
        """
        self._require(InstructionType.DETERMINING_SECOND_VARIABLE)
        text = text.strip()
        if not is_well_formed(text):
            return InputResult.VALIDATION_ERROR

        result = check_answer(text, self.exercise.second_variable.weight)
        if result == InputResult.VALIDATION_ERROR:
            self.tracker.track_error()
            self._log(f"Error: INVALID input {text}")
            return result
        if result == InputResult.INCORRECT:
            self.tracker.track_error()
            self._log(f"Error: FALSE input {text}")
            return result

        self._log(f"SOLUTION {text}")
        self._load_solving_system()
        return result

    def _load_solving_system(self) -> None:
        self.tracker.set_next_phase(EqualizationPhase.SECOND_SOLUTION)
        self.goal = Goal.solving_system(self.exercise)
        self.history.reset(GameState.for_solving_system(self.exercise))
        self.show_overlay = False
        self.instruction = InstructionType.DETERMINING_ISOLATED_VARIABLE

    def verify_weight(self) -> Verification:
        """The digital scale must show exactly the weight of the isolated variable."""
        self._require(InstructionType.DETERMINING_ISOLATED_VARIABLE)
        if self.state.left_weight != self.goal.expected_weight:
            return self._fail(Feedback.INVALID_WEIGHT)

        self.tracker.end_phase()
        self.tracker.end()
        self.feedback = None
        self.show_overlay = True
        self.show_hints = False
        self.instruction = InstructionType.SOLUTION
        return Verification(success=True)

    def finish(self) -> None:
        self._require(InstructionType.SOLUTION)
        if self.completed:
            return
        self.completed = True
        if self.on_complete is not None:
            self.on_complete(self.exercise.id)


def _without(items: Tuple[EqualizationItem, ...], index: int) -> Tuple[EqualizationItem, ...]:
    return items[:index] + items[index + 1:]


def _zone_name(target: DragSource) -> str:
    if target == DragSource.BALANCE_SCALE_LEFT:
        return "LeftScale"
    if target == DragSource.BALANCE_SCALE_RIGHT:
        return "RightScale"
    return "DigitalScale"
