"""
Flexibility study service for study setup and tracking entries.
"""
import json
import logging
from sqlmodel import Session, SQLModel, select
from typing import List, Optional, Sequence, Type

from algespace.core.config import settings
from algespace.core.exceptions import NotFoundError, ValidationError
from algespace.models.enums import (
    FlexibilityExerciseActionPhase,
    FlexibilityExerciseChoicePhase,
    FlexibilityExercisePhase,
)
from algespace.models.study import FlexibilityStudy, FlexibilityStudyData, FlexibilityStudyExercise
from algespace.schemas.study import CreateFlexibilityEntryRequest, FlexibilityStudyExerciseResponse

logger = logging.getLogger(__name__)

ACTION_SEPARATOR = ",\n"


def get_entry(
    session: Session,
    model: Type[SQLModel],
    user_id: int,
    username: str,
    study_id: int,
    row_id: int,
):
    """
    Load a tracking entry and check that it belongs to the given user and study.

    Raises:
        NotFoundError: If no such entry exists
    """
    entry = session.get(model, row_id)
    if entry is None or entry.user_id != user_id or entry.username != username or entry.study_id != study_id:
        raise NotFoundError(
            f"No tracking entry {row_id} for user {username} ({user_id}) in study {study_id}"
        )
    return entry


def append_to_column(entry: SQLModel, column: str, action: str) -> None:
    """Append an action to a text column, joining with ',\\n'."""
    if not hasattr(entry, column):
        raise ValidationError(f"Unknown tracking column '{column}'")
    previous_actions = getattr(entry, column)
    if previous_actions:
        setattr(entry, column, previous_actions + ACTION_SEPARATOR + action)
    else:
        setattr(entry, column, action)


def phase_data(time: float, errors: int, **extra) -> str:
    """JSON blob stored in a phase column."""
    return json.dumps({"time": time, "errors": errors, **extra})


def clear_entries(session: Session, model: Type[SQLModel], study_id: int, user_id: int, username: str) -> int:
    """Delete the tracking rows of a user in a study. Returns the number of deleted rows."""
    entries = session.exec(
        select(model).where(
            model.study_id == study_id,
            model.user_id == user_id,
            model.username == username,
        )
    ).all()
    for entry in entries:
        session.delete(entry)
    return len(entries)


def add_study(
    session: Session,
    study_id: int,
    exercises: Sequence[FlexibilityStudyExerciseResponse],
) -> FlexibilityStudy:
    """
    Create a study, or reset the exercise list of an existing one.

    Args:
        session: Study database session
        study_id: Study ID
        exercises: Exercises in the order they are presented

    Returns:
        The study row
    """
    study = session.get(FlexibilityStudy, study_id)
    if study is None:
        study = FlexibilityStudy(study_id=study_id)
        session.add(study)
    else:
        previous = session.exec(
            select(FlexibilityStudyExercise).where(FlexibilityStudyExercise.study_id == study_id)
        ).all()
        for row in previous:
            session.delete(row)

    for exercise in exercises:
        session.add(FlexibilityStudyExercise(
            study_id=study_id,
            flexibility_id=exercise.id,
            exercise_type=int(exercise.exercise_type),
            exercise_id=exercise.exercise_id,
        ))

    session.commit()
    session.refresh(study)
    logger.info(f"Stored flexibility study {study_id} with {len(exercises)} exercises")
    return study


def get_exercises(session: Session, study_id: int) -> Optional[List[FlexibilityStudyExerciseResponse]]:
    """Exercises of a study in order, or None if the study does not exist."""
    if session.get(FlexibilityStudy, study_id) is None:
        return None

    rows = session.exec(
        select(FlexibilityStudyExercise)
        .where(FlexibilityStudyExercise.study_id == study_id)
        .order_by(FlexibilityStudyExercise.flexibility_id)
    ).all()
    return [
        FlexibilityStudyExerciseResponse(
            id=row.flexibility_id,
            exercise_type=row.exercise_type,
            exercise_id=row.exercise_id,
        )
        for row in rows
    ]


def initialize_entry(session: Session, data: CreateFlexibilityEntryRequest) -> int:
    """
    Create a tracking entry for one exercise attempt.

    Earlier entries of the user are kept unless clear_entries_on_create is set.

    Returns:
        ID of the new entry
    """
    if settings.clear_entries_on_create:
        cleared = clear_entries(session, FlexibilityStudyData, data.study_id, data.user_id, data.username)
        if cleared:
            logger.info(f"Cleared {cleared} flexibility entries of user {data.user_id} in study {data.study_id}")

    entry = FlexibilityStudyData(
        study_id=data.study_id,
        user_id=data.user_id,
        username=data.username,
        flexibility_id=data.flexibility_id,
        exercise_id=data.exercise_id,
        exercise_type=int(data.exercise_type),
        agent_condition=int(data.agent_condition),
        agent_type=int(data.agent_type) if data.agent_type is not None else None,
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)
    logger.info(
        f"Created flexibility entry {entry.id} for user {data.user_id} "
        f"(study {data.study_id}, exercise {data.exercise_id})"
    )
    return entry.id


def add_action_to_entry(
    session: Session,
    user_id: int,
    username: str,
    study_id: int,
    row_id: int,
    phase: FlexibilityExerciseActionPhase,
    action: str,
) -> None:
    entry = get_entry(session, FlexibilityStudyData, user_id, username, study_id, row_id)
    append_to_column(entry, phase.column, action)
    session.add(entry)
    session.commit()


def track_choice(
    session: Session,
    user_id: int,
    username: str,
    study_id: int,
    row_id: int,
    phase: FlexibilityExerciseChoicePhase,
    choice: str,
) -> None:
    entry = get_entry(session, FlexibilityStudyData, user_id, username, study_id, row_id)
    setattr(entry, phase.column, choice)
    session.add(entry)
    session.commit()


def complete_phase_tracking_for_entry(
    session: Session,
    user_id: int,
    username: str,
    study_id: int,
    row_id: int,
    phase: FlexibilityExercisePhase,
    time: float,
    errors: int,
) -> None:
    """Store {time, errors} for a finished phase."""
    entry = get_entry(session, FlexibilityStudyData, user_id, username, study_id, row_id)
    setattr(entry, phase.column, phase_data(time, errors))
    session.add(entry)
    session.commit()


def complete_phase_tracking_for_comparison_or_resolve_entry(
    session: Session,
    user_id: int,
    username: str,
    study_id: int,
    row_id: int,
    phase: FlexibilityExercisePhase,
    time: float,
    errors: int,
    choice: str,
) -> None:
    """Store {time, errors, choice} for a finished comparison or resolve conclusion phase."""
    entry = get_entry(session, FlexibilityStudyData, user_id, username, study_id, row_id)
    setattr(entry, phase.column, phase_data(time, errors, choice=choice))
    session.add(entry)
    session.commit()


def complete_tracking_for_entry(
    session: Session,
    user_id: int,
    username: str,
    study_id: int,
    row_id: int,
    time: float,
    errors: int,
) -> None:
    entry = get_entry(session, FlexibilityStudyData, user_id, username, study_id, row_id)
    entry.total_time = time
    entry.total_errors = errors
    session.add(entry)
    session.commit()
    logger.info(f"Completed flexibility entry {row_id} of user {user_id}: {time:.1f}s, {errors} errors")
