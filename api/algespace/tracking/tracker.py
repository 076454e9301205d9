"""
Tracking hooks used by the exercise state machines.

A tracker is created per exercise attempt. When tracking is enabled it
creates one entry on start() and then reports actions, choices, phase
results and the final result against that entry. When disabled every
method is a no-op.
"""
import logging
import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from algespace.core.exceptions import TrackingError
from algespace.models.enums import (
    AgentCondition,
    AgentType,
    CKExerciseType,
    EqualizationPhase,
    FlexibilityExerciseActionPhase,
    FlexibilityExerciseChoicePhase,
    FlexibilityExercisePhase,
    FlexibilityStudyExerciseType,
)
from algespace.tracking.client import TrackingClient

logger = logging.getLogger(__name__)

PhaseT = TypeVar("PhaseT")


@dataclass(frozen=True)
class StudyUser:
    """An authenticated study participant."""
    id: int
    username: str
    token: str


class PhaseTracker(Generic[PhaseT]):
    """Time and error bookkeeping shared by both study kinds."""

    route_prefix = ""

    def __init__(
        self,
        client: Optional[TrackingClient],
        enabled: bool,
        user: Optional[StudyUser],
        study_id: Optional[int],
        initial_phase: PhaseT,
        clock: Callable[[], float] = time.perf_counter,
        executor: Optional[Executor] = None,
    ):
        if enabled and (client is None or user is None or study_id is None):
            raise TrackingError("Tracking needs a client, a user and a study ID")
        self.client = client
        self.enabled = enabled
        self.user = user
        self.study_id = study_id
        self.clock = clock
        self.executor = executor

        self.entry_id: Optional[int] = None
        self.phase: PhaseT = initial_phase
        self.errors = 0
        self.errors_in_phase = 0
        self.exercise_start_time = clock()
        self.phase_start_time = self.exercise_start_time

    def _entry_payload(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _identity(self) -> Dict[str, Any]:
        if self.entry_id is None:
            raise TrackingError("Tracking entry was not created, call start() first")
        return {
            "userId": self.user.id,
            "username": self.user.username,
            "studyId": self.study_id,
            "id": self.entry_id,
        }

    def _elapsed(self, since: float) -> float:
        return round(self.clock() - since, 3)

    def _send(self, route: str, payload: Dict[str, Any], context: str) -> None:
        if self.executor is None:
            self.client.send(self.route_prefix, route, payload, context)
            return

        future = self.executor.submit(self.client.send, self.route_prefix, route, payload, context)
        future.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"Tracking call failed: {error}")

    def start(self) -> Optional[int]:
        """Create the tracking entry. Returns its ID, or None when disabled."""
        if not self.enabled:
            return None
        self.entry_id = self.client.create_entry(self.route_prefix, self._entry_payload())
        self.exercise_start_time = self.clock()
        self.phase_start_time = self.exercise_start_time
        logger.debug(f"Tracking entry {self.entry_id} created for user {self.user.id}")
        return self.entry_id

    def initialize_phase(self, phase: PhaseT) -> None:
        """Start timing a phase without reporting the previous one."""
        if not self.enabled:
            return
        self.phase = phase
        self.phase_start_time = self.clock()
        self.errors_in_phase = 0

    def track_error(self) -> None:
        if not self.enabled:
            return
        self.errors += 1
        self.errors_in_phase += 1

    def end(self) -> None:
        """Report total time and total errors of the attempt."""
        if not self.enabled:
            return
        payload = {**self._identity(), "time": self._elapsed(self.exercise_start_time), "errors": self.errors}
        self._send("completeTracking", payload, "Sending final tracking data failed")


class FlexibilityTracker(PhaseTracker[FlexibilityExercisePhase]):
    """Tracking hook for flexibility exercises."""

    route_prefix = "flexibility-study"

    def __init__(
        self,
        client: Optional[TrackingClient],
        enabled: bool,
        user: Optional[StudyUser],
        study_id: Optional[int],
        flexibility_id: int,
        exercise_id: int,
        exercise_type: FlexibilityStudyExerciseType,
        agent_condition: AgentCondition = AgentCondition.NONE,
        agent_type: Optional[AgentType] = None,
        initial_phase: Optional[FlexibilityExercisePhase] = None,
        clock: Callable[[], float] = time.perf_counter,
        executor: Optional[Executor] = None,
    ):
        super().__init__(
            client, enabled, user, study_id,
            initial_phase if initial_phase is not None else FlexibilityExercisePhase.TRANSFORMATION,
            clock=clock, executor=executor,
        )
        self.flexibility_id = flexibility_id
        self.exercise_id = exercise_id
        self.exercise_type = exercise_type
        self.agent_condition = agent_condition
        self.agent_type = agent_type

    def _entry_payload(self) -> Dict[str, Any]:
        return {
            "userId": self.user.id,
            "username": self.user.username,
            "studyId": self.study_id,
            "flexibilityId": self.flexibility_id,
            "exerciseId": self.exercise_id,
            "exerciseType": int(self.exercise_type),
            "agentCondition": int(self.agent_condition),
            "agentType": int(self.agent_type) if self.agent_type is not None else None,
        }

    def track_action(self, action: str, action_phase: FlexibilityExerciseActionPhase) -> None:
        if not self.enabled:
            return
        payload = {**self._identity(), "phase": int(action_phase), "action": action}
        self._send("addActionToEntry", payload, "Sending tracked action data failed")

    def track_choice(self, choice: str, choice_phase: FlexibilityExerciseChoicePhase) -> None:
        if not self.enabled:
            return
        payload = {**self._identity(), "phase": int(choice_phase), "choice": choice}
        self._send("trackChoice", payload, "Sending tracked action data failed")

    def set_next_phase(self, phase: FlexibilityExercisePhase, choice: Optional[str] = None) -> None:
        """Report the current phase and start timing the next one."""
        if not self.enabled:
            return
        self.end_phase(choice)
        self.initialize_phase(phase)

    def end_phase(self, choice: Optional[str] = None) -> None:
        """
        Report time and errors of the current phase.

        Comparison and resolve conclusion phases report no errors but the choice.
        """
        if not self.enabled:
            return
        payload = {**self._identity(), "time": self._elapsed(self.phase_start_time), "phase": int(self.phase)}
        if self.phase.records_choice:
            payload.update({"errors": 0, "choice": choice})
        else:
            payload["errors"] = self.errors_in_phase
        self._send("completePhaseTracking", payload, "Sending tracking data on phase end failed")


class CKTracker(PhaseTracker[EqualizationPhase]):
    """Tracking hook for the equalization game, which also counts opened hints."""

    route_prefix = "ck-study"

    def __init__(
        self,
        client: Optional[TrackingClient],
        enabled: bool,
        user: Optional[StudyUser],
        study_id: Optional[int],
        exercise_id: int,
        exercise_type: CKExerciseType = CKExerciseType.EQUALIZATION,
        clock: Callable[[], float] = time.perf_counter,
        executor: Optional[Executor] = None,
    ):
        super().__init__(
            client, enabled, user, study_id, EqualizationPhase.EQUALIZATION,
            clock=clock, executor=executor,
        )
        self.exercise_id = exercise_id
        self.exercise_type = exercise_type
        self.hints_in_phase = 0

    def _entry_payload(self) -> Dict[str, Any]:
        return {
            "userId": self.user.id,
            "username": self.user.username,
            "studyId": self.study_id,
            "exerciseType": int(self.exercise_type),
            "exerciseId": self.exercise_id,
        }

    def initialize_phase(self, phase: EqualizationPhase) -> None:
        super().initialize_phase(phase)
        self.hints_in_phase = 0

    def track_action(self, action: str) -> None:
        """Log an action in the current phase."""
        if not self.enabled:
            return
        payload = {**self._identity(), "phase": int(self.phase), "action": action}
        self._send("addActionToEntry", payload, "Sending tracked action data failed")

    def track_hint(self) -> None:
        if not self.enabled:
            return
        self.hints_in_phase += 1
        payload = {**self._identity(), "phase": int(self.phase)}
        self._send("trackHint", payload, "Sending tracked hint failed")

    def set_next_phase(self, phase: EqualizationPhase) -> None:
        if not self.enabled:
            return
        self.end_phase()
        self.initialize_phase(phase)

    def end_phase(self) -> None:
        if not self.enabled:
            return
        payload = {
            **self._identity(),
            "phase": int(self.phase),
            "time": self._elapsed(self.phase_start_time),
            "errors": self.errors_in_phase,
            "hints": self.hints_in_phase,
        }
        self._send("completePhaseTracking", payload, "Sending tracking data on phase end failed")
