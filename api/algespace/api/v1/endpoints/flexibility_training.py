"""
Flexibility training exercise endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
import logging

from algespace.core.database import get_session
from algespace.core.exceptions import NotFoundError
from algespace.models.enums import FlexibilityExerciseType
from algespace.schemas.flexibility import (
    EfficiencyExercise,
    FlexibilityExercisesResponse,
    MatchingExercise,
    SuitabilityExercise,
)
from algespace.services import exercise_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flexibility-training", tags=["flexibility-training"])


def _get_exercise(session: Session, exercise_type: FlexibilityExerciseType, exercise_id: int):
    try:
        return exercise_service.get_flexibility_exercise(session, exercise_type, exercise_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/setExercises", status_code=status.HTTP_200_OK)
async def set_exercises(
    exercises: FlexibilityExercisesResponse,
    session: Session = Depends(get_session)
):
    """Replace all flexibility exercises (suitability, efficiency and matching)."""
    try:
        count = exercise_service.set_flexibility_exercises(session, exercises)
    except Exception as e:
        session.rollback()
        logger.error(f"Error storing flexibility exercises: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {"message": f"Stored {count} flexibility exercise(s)", "count": count}


@router.get("/getExercises", response_model=FlexibilityExercisesResponse)
async def get_exercises(session: Session = Depends(get_session)):
    return exercise_service.get_flexibility_exercises(session)


@router.get("/getSuitabilityExercise/{exercise_id}", response_model=SuitabilityExercise)
async def get_suitability_exercise(exercise_id: int, session: Session = Depends(get_session)):
    return _get_exercise(session, FlexibilityExerciseType.SUITABILITY, exercise_id)


@router.get("/getEfficiencyExercise/{exercise_id}", response_model=EfficiencyExercise)
async def get_efficiency_exercise(exercise_id: int, session: Session = Depends(get_session)):
    return _get_exercise(session, FlexibilityExerciseType.EFFICIENCY, exercise_id)


@router.get("/getMatchingExercise/{exercise_id}", response_model=MatchingExercise)
async def get_matching_exercise(exercise_id: int, session: Session = Depends(get_session)):
    return _get_exercise(session, FlexibilityExerciseType.MATCHING, exercise_id)
