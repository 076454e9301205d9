"""
Equalization exercise endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from typing import List
import logging

from algespace.core.database import get_session
from algespace.core.exceptions import NotFoundError
from algespace.core.security import require_bearer_token
from algespace.schemas.equalization import EqualizationExercise
from algespace.services import exercise_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/equalization/conceptual-knowledge/exercises", tags=["equalization"])


@router.post("/setExercises", status_code=status.HTTP_200_OK)
async def set_exercises(
    exercises: List[EqualizationExercise],
    session: Session = Depends(get_session)
):
    """Replace all equalization exercises."""
    try:
        count = exercise_service.set_equalization_exercises(session, exercises)
    except Exception as e:
        session.rollback()
        logger.error(f"Error storing equalization exercises: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {"message": f"Stored {count} equalization exercise(s)", "count": count}


@router.get("/getExercises", response_model=List[EqualizationExercise])
async def get_exercises(session: Session = Depends(get_session)):
    return exercise_service.get_equalization_exercises(session)


@router.get("/getExercise/{exercise_id}", response_model=EqualizationExercise)
async def get_exercise(exercise_id: int, session: Session = Depends(get_session)):
    try:
        return exercise_service.get_equalization_exercise(session, exercise_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/getExerciseForStudy/{exercise_id}",
    response_model=EqualizationExercise,
    dependencies=[Depends(require_bearer_token)],
)
async def get_exercise_for_study(exercise_id: int, session: Session = Depends(get_session)):
    """Same as getExercise, for authenticated study participants."""
    try:
        return exercise_service.get_equalization_exercise(session, exercise_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
