"""
Conceptual knowledge study service for equalization tracking entries.
"""
import logging
from sqlmodel import Session

from algespace.core.config import settings
from algespace.models.enums import EqualizationPhase
from algespace.models.study import CKStudyData
from algespace.schemas.study import CreateCKEntryRequest
from algespace.services.flexibility_study_service import (
    append_to_column,
    clear_entries,
    get_entry,
    phase_data,
)

logger = logging.getLogger(__name__)

HINT_ACTION = "HINT"


def initialize_entry(session: Session, data: CreateCKEntryRequest) -> int:
    """Create a tracking entry for one equalization attempt and return its ID."""
    if settings.clear_entries_on_create:
        clear_entries(session, CKStudyData, data.study_id, data.user_id, data.username)

    entry = CKStudyData(
        study_id=data.study_id,
        user_id=data.user_id,
        username=data.username,
        exercise_type=int(data.exercise_type),
        exercise_id=data.exercise_id,
        total_hints=0,
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)
    logger.info(f"Created CK entry {entry.id} for user {data.user_id} (study {data.study_id})")
    return entry.id


def add_action_to_entry(
    session: Session,
    user_id: int,
    username: str,
    study_id: int,
    row_id: int,
    phase: EqualizationPhase,
    action: str,
) -> None:
    entry = get_entry(session, CKStudyData, user_id, username, study_id, row_id)
    append_to_column(entry, phase.actions_column, action)
    session.add(entry)
    session.commit()


def track_hint(
    session: Session,
    user_id: int,
    username: str,
    study_id: int,
    row_id: int,
    phase: EqualizationPhase,
) -> int:
    """Log an opened hint in the phase's action column. Returns the total hint count."""
    entry = get_entry(session, CKStudyData, user_id, username, study_id, row_id)
    append_to_column(entry, phase.actions_column, HINT_ACTION)
    entry.total_hints = (entry.total_hints or 0) + 1
    session.add(entry)
    session.commit()
    return entry.total_hints


def complete_phase_tracking_for_entry(
    session: Session,
    user_id: int,
    username: str,
    study_id: int,
    row_id: int,
    phase: EqualizationPhase,
    time: float,
    errors: int,
    hints: int,
) -> None:
    entry = get_entry(session, CKStudyData, user_id, username, study_id, row_id)
    setattr(entry, phase.column, phase_data(time, errors, hints=hints))
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
    entry = get_entry(session, CKStudyData, user_id, username, study_id, row_id)
    entry.total_time = time
    entry.total_errors = errors
    session.add(entry)
    session.commit()
    logger.info(f"Completed CK entry {row_id} of user {user_id}: {time:.1f}s, {errors} errors")
