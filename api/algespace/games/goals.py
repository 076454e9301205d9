"""
Practice goals and streaks.

A learner picks a goal (e.g., "solve three exercises in a row") and
optionally a strategy. Completed and failed exercises update per-route
streaks; the store tells whether the goal is reached. One store belongs to
one learner session and is passed to the exercise machines explicitly.
"""
import logging
from collections import defaultdict
from enum import Enum, IntEnum
from typing import Dict, Optional, Set

logger = logging.getLogger(__name__)


class GoalTask(IntEnum):
    NONE = 0
    ONE_CORRECT = 1
    THREE_CORRECT = 2
    FIVE_CORRECT = 3
    RECOVER_FROM_MISTAKE = 4
    LEVEL_FIVE = 5


class GoalStrategy(IntEnum):
    ANY = 0
    EQUALIZATION = 1
    SUBSTITUTION = 2
    ELIMINATION = 3
    FLEXIBILITY = 4


class Route(str, Enum):
    EQUALIZATION = "equalization"
    SUBSTITUTION = "substitution"
    ELIMINATION = "elimination"
    FLEXIBILITY_TRAINING = "flexibility-training"


# Streak needed for ONE_CORRECT, THREE_CORRECT and FIVE_CORRECT
STREAK_THRESHOLDS = {
    GoalTask.ONE_CORRECT: 1,
    GoalTask.THREE_CORRECT: 3,
    GoalTask.FIVE_CORRECT: 5,
}

STRATEGY_ROUTES = {
    GoalStrategy.EQUALIZATION: Route.EQUALIZATION,
    GoalStrategy.SUBSTITUTION: Route.SUBSTITUTION,
    GoalStrategy.ELIMINATION: Route.ELIMINATION,
    GoalStrategy.FLEXIBILITY: Route.FLEXIBILITY_TRAINING,
}

# Exercises of the highest level per route
LEVEL_FIVE_EXERCISES = {
    Route.EQUALIZATION: (10,),
    Route.SUBSTITUTION: (9, 10),
    Route.ELIMINATION: (9, 10),
}


class GoalStore:
    """Goal, strategy, streaks and completed exercises of one learner."""

    def __init__(self):
        self.task = GoalTask.NONE
        self.strategy = GoalStrategy.ANY
        self.streaks: Dict[Route, int] = {route: 0 for route in Route}
        self.task_success = False
        self.incorrect_flag = False
        self.level_five_completed = False
        self.questions_encountered = 0
        self.completed_exercises: Dict[Route, Set[int]] = defaultdict(set)
        self.completed_study_exercises: Dict[int, Set[int]] = defaultdict(set)

    def reset_streaks(self) -> None:
        for route in self.streaks:
            self.streaks[route] = 0

    def _clear_success(self) -> None:
        self.task_success = False
        self.level_five_completed = False

    def set_task(self, task: GoalTask) -> None:
        """Change the goal; a new goal starts all streaks from zero."""
        if task != self.task:
            self.task = task
            if task == GoalTask.NONE:
                self.strategy = GoalStrategy.ANY
            # no level five exercises in flexibility training
            if task == GoalTask.LEVEL_FIVE and self.strategy == GoalStrategy.FLEXIBILITY:
                self.strategy = GoalStrategy.ANY
            self.reset_streaks()
        self._clear_success()
        logger.info(f"Goal set to {self.task.name} with strategy {self.strategy.name}")

    def set_strategy(self, strategy: GoalStrategy, route: Route) -> Optional[Route]:
        """
        Change the strategy while working on `route`.

        Returns:
            The route to switch to if the strategy does not match the current
            one, None otherwise
        """
        if strategy != self.strategy:
            self.strategy = strategy
            self.reset_streaks()
        self._clear_success()

        if strategy == GoalStrategy.ANY:
            return None
        expected = STRATEGY_ROUTES[strategy]
        return expected if expected != route else None

    def strategy_matches(self, route: Route) -> bool:
        return self.strategy == GoalStrategy.ANY or STRATEGY_ROUTES[self.strategy] == route

    def encounter(self, route: Route, exercise_id: int) -> None:
        self.questions_encountered += 1
        logger.debug(f"Exercise {exercise_id} of {route.value} opened ({self.questions_encountered} so far)")

    def record_correct(self, route: Route, exercise_id: Optional[int] = None) -> bool:
        """Count a solved exercise and return whether the goal is reached."""
        self.streaks[route] += 1
        if exercise_id is not None:
            self.completed_exercises[route].add(exercise_id)
        return self.evaluate(route, exercise_id)

    def record_incorrect(self, route: Route) -> None:
        self.streaks[route] = 0
        self.incorrect_flag = True

    def complete_study_exercise(self, study_id: int, flexibility_id: int) -> None:
        self.completed_study_exercises[study_id].add(flexibility_id)

    def evaluate(self, route: Route, current_exercise: Optional[int] = None) -> bool:
        """Whether the current goal is reached; success sticks until the goal changes."""
        if self.task_success:
            return True

        if not self.strategy_matches(route):
            self.reset_streaks()
            return False

        if self.task in STREAK_THRESHOLDS:
            threshold = STREAK_THRESHOLDS[self.task]
            if self.strategy == GoalStrategy.ANY:
                reached = any(streak >= threshold for streak in self.streaks.values())
            else:
                reached = self.streaks[STRATEGY_ROUTES[self.strategy]] >= threshold
            self.task_success = reached
        elif self.task == GoalTask.RECOVER_FROM_MISTAKE:
            self.task_success = self.incorrect_flag
        elif self.task == GoalTask.LEVEL_FIVE:
            on_level_five = current_exercise is not None and current_exercise in LEVEL_FIVE_EXERCISES.get(route, ())
            if on_level_five or self.level_five_completed:
                self.level_five_completed = True
                self.task_success = True

        if self.task_success:
            logger.info(f"Goal {self.task.name} reached on {route.value}")
        return self.task_success
