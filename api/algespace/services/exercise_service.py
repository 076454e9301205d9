"""
Exercise service for storing and reading exercise definitions.
"""
import logging
from sqlmodel import Session, select
from typing import List, Sequence, Type, Union

from algespace.core.exceptions import NotFoundError
from algespace.models.enums import FlexibilityExerciseType
from algespace.models.exercise import EqualizationExerciseRecord, FlexibilityExerciseRecord
from algespace.schemas.equalization import EqualizationExercise
from algespace.schemas.flexibility import (
    EfficiencyExercise,
    FlexibilityExercisesResponse,
    MatchingExercise,
    SuitabilityExercise,
)

logger = logging.getLogger(__name__)

FlexibilityExercise = Union[SuitabilityExercise, EfficiencyExercise, MatchingExercise]

EXERCISE_SCHEMAS: dict[FlexibilityExerciseType, Type[FlexibilityExercise]] = {
    FlexibilityExerciseType.SUITABILITY: SuitabilityExercise,
    FlexibilityExerciseType.EFFICIENCY: EfficiencyExercise,
    FlexibilityExerciseType.MATCHING: MatchingExercise,
}


def set_equalization_exercises(session: Session, exercises: Sequence[EqualizationExercise]) -> int:
    """
    Replace all equalization exercises.

    Returns:
        Number of stored exercises
    """
    for record in session.exec(select(EqualizationExerciseRecord)).all():
        session.delete(record)
    session.flush()

    for exercise in exercises:
        session.add(EqualizationExerciseRecord(id=exercise.id, payload=exercise.model_dump(mode="json")))

    session.commit()
    logger.info(f"Stored {len(exercises)} equalization exercises")
    return len(exercises)


def get_equalization_exercises(session: Session) -> List[EqualizationExercise]:
    records = session.exec(select(EqualizationExerciseRecord).order_by(EqualizationExerciseRecord.id)).all()
    return [EqualizationExercise.model_validate(record.payload) for record in records]


def get_equalization_exercise(session: Session, exercise_id: int) -> EqualizationExercise:
    """
    Raises:
        NotFoundError: If the exercise does not exist
    """
    record = session.get(EqualizationExerciseRecord, exercise_id)
    if record is None:
        raise NotFoundError(f"Equalization exercise {exercise_id} not found")
    return EqualizationExercise.model_validate(record.payload)


def set_flexibility_exercises(session: Session, exercises: FlexibilityExercisesResponse) -> int:
    """Replace all flexibility exercises of every type."""
    for record in session.exec(select(FlexibilityExerciseRecord)).all():
        session.delete(record)
    session.flush()

    grouped = (
        (FlexibilityExerciseType.SUITABILITY, exercises.suitability_exercises),
        (FlexibilityExerciseType.EFFICIENCY, exercises.efficiency_exercises),
        (FlexibilityExerciseType.MATCHING, exercises.matching_exercises),
    )
    count = 0
    for exercise_type, group in grouped:
        for exercise in group:
            session.add(FlexibilityExerciseRecord(
                exercise_type=int(exercise_type),
                exercise_id=exercise.id,
                payload=exercise.model_dump(mode="json"),
            ))
            count += 1

    session.commit()
    logger.info(f"Stored {count} flexibility exercises")
    return count


def get_flexibility_exercises(session: Session) -> FlexibilityExercisesResponse:
    records = session.exec(
        select(FlexibilityExerciseRecord).order_by(FlexibilityExerciseRecord.exercise_type, FlexibilityExerciseRecord.exercise_id)
    ).all()

    grouped: dict[FlexibilityExerciseType, list] = {exercise_type: [] for exercise_type in EXERCISE_SCHEMAS}
    for record in records:
        exercise_type = FlexibilityExerciseType(record.exercise_type)
        grouped[exercise_type].append(EXERCISE_SCHEMAS[exercise_type].model_validate(record.payload))

    return FlexibilityExercisesResponse(
        suitability_exercises=grouped[FlexibilityExerciseType.SUITABILITY],
        efficiency_exercises=grouped[FlexibilityExerciseType.EFFICIENCY],
        matching_exercises=grouped[FlexibilityExerciseType.MATCHING],
    )


def get_flexibility_exercise(
    session: Session,
    exercise_type: FlexibilityExerciseType,
    exercise_id: int,
) -> FlexibilityExercise:
    """
    Raises:
        NotFoundError: If no exercise of that type has the ID
    """
    record = session.exec(
        select(FlexibilityExerciseRecord).where(
            FlexibilityExerciseRecord.exercise_type == int(exercise_type),
            FlexibilityExerciseRecord.exercise_id == exercise_id,
        )
    ).first()
    if record is None:
        raise NotFoundError(f"{exercise_type.name.capitalize()} exercise {exercise_id} not found")
    return EXERCISE_SCHEMAS[exercise_type].model_validate(record.payload)
