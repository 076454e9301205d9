"""
Tests for the study and exercise services, called directly with a session.
"""

import json
from datetime import timezone

import pytest

from algespace.core.exceptions import NotFoundError, ValidationError
from algespace.data.examples import (
    FIRST_STUDY_ID,
    get_equalization_exercises,
    get_first_study,
    get_flexibility_exercises,
)
from algespace.models.enums import (
    AgentCondition,
    CKExerciseType,
    EqualizationPhase,
    FlexibilityExerciseActionPhase,
    FlexibilityExerciseChoicePhase,
    FlexibilityExercisePhase,
    FlexibilityExerciseType,
    FlexibilityStudyExerciseType,
)
from algespace.models.study import CKStudyData, FlexibilityStudy, FlexibilityStudyData
from algespace.schemas.study import CreateCKEntryRequest, CreateFlexibilityEntryRequest
from algespace.services import ck_study_service, exercise_service, flexibility_study_service


def _flexibility_entry(study_session):
    request = CreateFlexibilityEntryRequest(
        user_id=3,
        username="participant03",
        study_id=FIRST_STUDY_ID,
        flexibility_id=4,
        exercise_id=1,
        exercise_type=FlexibilityStudyExerciseType.MATCHING,
    )
    return flexibility_study_service.initialize_entry(study_session, request)


def _ck_entry(study_session):
    request = CreateCKEntryRequest(
        user_id=3, username="participant03", study_id=FIRST_STUDY_ID,
        exercise_type=CKExerciseType.EQUALIZATION, exercise_id=2,
    )
    return ck_study_service.initialize_entry(study_session, request)


class TestFlexibilityStudyService:

    def test_add_study_and_read_exercises(self, study_session):
        flexibility_study_service.add_study(study_session, FIRST_STUDY_ID, get_first_study())

        exercises = flexibility_study_service.get_exercises(study_session, FIRST_STUDY_ID)

        assert len(exercises) == 7
        assert exercises[1].exercise_type == FlexibilityStudyExerciseType.SUITABILITY
        assert exercises[-1].exercise_type == FlexibilityStudyExerciseType.PLAIN_EXERCISE

    def test_rows_are_stamped_with_utc_time(self, study_session):
        study = FlexibilityStudy(study_id=9)
        assert study.created_at.tzinfo == timezone.utc

        study_session.add(study)
        study_session.commit()
        entry_id = _flexibility_entry(study_session)

        assert study_session.get(FlexibilityStudy, 9) is not None
        assert study_session.get(FlexibilityStudyData, entry_id) is not None

    def test_unknown_study_has_no_exercises(self, study_session):
        assert flexibility_study_service.get_exercises(study_session, 5) is None

    def test_entry_defaults_to_no_agent(self, study_session):
        entry_id = _flexibility_entry(study_session)

        entry = study_session.get(FlexibilityStudyData, entry_id)
        assert entry.agent_condition == AgentCondition.NONE
        assert entry.agent_type is None

    def test_action_columns_follow_the_phase(self, study_session):
        entry_id = _flexibility_entry(study_session)
        args = (study_session, 3, "participant03", FIRST_STUDY_ID, entry_id)

        flexibility_study_service.add_action_to_entry(
            *args, FlexibilityExerciseActionPhase.SYSTEM_MATCHING_ACTIONS, "selected alternative system 2,\nFAILED"
        )
        flexibility_study_service.add_action_to_entry(
            *args, FlexibilityExerciseActionPhase.SYSTEM_MATCHING_ACTIONS, "SUCCESS"
        )
        flexibility_study_service.add_action_to_entry(
            *args, FlexibilityExerciseActionPhase.EQUATION_SELECTION, "FirstInitial"
        )

        entry = study_session.get(FlexibilityStudyData, entry_id)
        assert entry.system_matching_actions == "selected alternative system 2,\nFAILED,\nSUCCESS"
        assert entry.equation_selection == "FirstInitial"

    def test_choice_columns_hold_the_latest_choice(self, study_session):
        entry_id = _flexibility_entry(study_session)
        args = (study_session, 3, "participant03", FIRST_STUDY_ID, entry_id)

        flexibility_study_service.track_choice(*args, FlexibilityExerciseChoicePhase.FIRST_SOLUTION_CHOICE, "Yes")
        flexibility_study_service.track_choice(*args, FlexibilityExerciseChoicePhase.FIRST_SOLUTION_CHOICE, "No")

        assert study_session.get(FlexibilityStudyData, entry_id).first_solution_choice == "No"

    def test_phase_data_is_json(self, study_session):
        entry_id = _flexibility_entry(study_session)
        args = (study_session, 3, "participant03", FIRST_STUDY_ID, entry_id)

        flexibility_study_service.complete_phase_tracking_for_entry(
            *args, FlexibilityExercisePhase.SYSTEM_SELECTION, 8.5, 1
        )
        flexibility_study_service.complete_phase_tracking_for_comparison_or_resolve_entry(
            *args, FlexibilityExercisePhase.RESOLVE_CONCLUSION, 20.0, 0, "Elimination"
        )

        entry = study_session.get(FlexibilityStudyData, entry_id)
        assert json.loads(entry.system_selection) == {"time": 8.5, "errors": 1}
        assert json.loads(entry.resolve_conclusion) == {"time": 20.0, "errors": 0, "choice": "Elimination"}

    def test_entry_must_match_user_and_study(self, study_session):
        entry_id = _flexibility_entry(study_session)

        with pytest.raises(NotFoundError):
            flexibility_study_service.complete_tracking_for_entry(
                study_session, 3, "participant03", 2, entry_id, 10.0, 0
            )
        with pytest.raises(NotFoundError):
            flexibility_study_service.complete_tracking_for_entry(
                study_session, 3, "someone-else", FIRST_STUDY_ID, entry_id, 10.0, 0
            )

    def test_unknown_column_is_rejected(self, study_session):
        entry = FlexibilityStudyData(
            study_id=1, user_id=1, username="p", flexibility_id=1, exercise_id=1,
            exercise_type=1, agent_condition=0,
        )
        with pytest.raises(ValidationError):
            flexibility_study_service.append_to_column(entry, "no_such_column", "SUCCESS")

    def test_clear_entries_only_touches_one_user(self, study_session):
        _flexibility_entry(study_session)
        _flexibility_entry(study_session)
        other = CreateFlexibilityEntryRequest(
            user_id=4, username="participant04", study_id=FIRST_STUDY_ID, flexibility_id=1,
            exercise_id=1, exercise_type=FlexibilityStudyExerciseType.WORKED_EXAMPLES,
        )
        flexibility_study_service.initialize_entry(study_session, other)

        cleared = flexibility_study_service.clear_entries(
            study_session, FlexibilityStudyData, FIRST_STUDY_ID, 3, "participant03"
        )
        study_session.commit()

        assert cleared == 2
        assert study_session.get(FlexibilityStudyData, 3).user_id == 4


class TestCKStudyService:

    def test_hints_are_counted_per_entry(self, study_session):
        entry_id = _ck_entry(study_session)
        args = (study_session, 3, "participant03", FIRST_STUDY_ID, entry_id)

        ck_study_service.track_hint(*args, EqualizationPhase.EQUALIZATION)
        total = ck_study_service.track_hint(*args, EqualizationPhase.FIRST_SOLUTION)

        entry = study_session.get(CKStudyData, entry_id)
        assert total == 2
        assert entry.equalization_actions == "HINT"
        assert entry.first_solution_actions == "HINT"

    def test_phase_data_includes_hints(self, study_session):
        entry_id = _ck_entry(study_session)

        ck_study_service.complete_phase_tracking_for_entry(
            study_session, 3, "participant03", FIRST_STUDY_ID, entry_id,
            EqualizationPhase.SECOND_SOLUTION, 14.0, 2, 1,
        )

        entry = study_session.get(CKStudyData, entry_id)
        assert json.loads(entry.second_solution) == {"time": 14.0, "errors": 2, "hints": 1}


class TestExerciseService:

    def test_equalization_round_trip(self, session):
        exercise_service.set_equalization_exercises(session, get_equalization_exercises())

        assert exercise_service.get_equalization_exercise(session, 2) == get_equalization_exercises()[1]

    def test_missing_equalization_exercise(self, session):
        with pytest.raises(NotFoundError):
            exercise_service.get_equalization_exercise(session, 1)

    def test_flexibility_exercise_by_type(self, session):
        exercise_service.set_flexibility_exercises(session, get_flexibility_exercises())

        exercise = exercise_service.get_flexibility_exercise(session, FlexibilityExerciseType.EFFICIENCY, 1)

        assert exercise == get_flexibility_exercises().efficiency_exercises[0]

    def test_missing_flexibility_exercise_names_the_type(self, session):
        with pytest.raises(NotFoundError, match="Matching exercise 3 not found"):
            exercise_service.get_flexibility_exercise(session, FlexibilityExerciseType.MATCHING, 3)
