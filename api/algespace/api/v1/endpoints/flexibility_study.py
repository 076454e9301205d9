"""
Flexibility study endpoints.

Every failure inside a service call is answered with 400 and the exception
message, which is what the frontend expects.
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session
from typing import List
import logging

from algespace.core.config import settings
from algespace.core.database import get_study_session
from algespace.core.security import require_bearer_token
from algespace.data.examples import FIRST_STUDY_ID, get_first_study
from algespace.schemas.study import (
    CompleteFlexibilityTrackingRequest,
    CreateFlexibilityEntryRequest,
    FlexibilityStudyExerciseResponse,
    TrackFlexibilityActionRequest,
    TrackFlexibilityChoiceRequest,
)
from algespace.services import flexibility_study_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flexibility-study", tags=["flexibility-study"])


@router.get(
    "/getExercisesForStudy/{study_id}",
    response_model=List[FlexibilityStudyExerciseResponse],
    dependencies=[Depends(require_bearer_token)],
)
async def get_exercises_for_study(
    study_id: int,
    session: Session = Depends(get_study_session)
):
    """Exercises of a study in presentation order."""
    try:
        exercises = flexibility_study_service.get_exercises(session, study_id)
    except Exception as e:
        logger.error(f"Error loading exercises for study {study_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if exercises is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Study {study_id} not found"
        )
    return exercises


@router.put("/setFirstStudy", status_code=status.HTTP_200_OK)
async def set_first_study(session: Session = Depends(get_study_session)):
    """Seed the first flexibility study. Only available in development."""
    if not settings.is_development:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Seeding studies is only available in development"
        )

    try:
        flexibility_study_service.add_study(session, FIRST_STUDY_ID, get_first_study())
    except Exception as e:
        session.rollback()
        logger.error(f"Error seeding flexibility study {FIRST_STUDY_ID}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(status_code=status.HTTP_200_OK)


@router.put("/createEntry", response_model=int, dependencies=[Depends(require_bearer_token)])
async def create_entry(
    request: CreateFlexibilityEntryRequest,
    session: Session = Depends(get_study_session)
):
    """
    Create a tracking entry for one exercise attempt.

    Returns:
        ID of the entry, used by all later tracking calls
    """
    try:
        return flexibility_study_service.initialize_entry(session, request)
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating flexibility entry for user {request.user_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/addActionToEntry", dependencies=[Depends(require_bearer_token)])
async def add_action_to_entry(
    request: TrackFlexibilityActionRequest,
    session: Session = Depends(get_study_session)
):
    try:
        flexibility_study_service.add_action_to_entry(
            session, request.user_id, request.username, request.study_id, request.id,
            request.phase, request.action
        )
    except Exception as e:
        session.rollback()
        logger.error(f"Error tracking action for entry {request.id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(status_code=status.HTTP_200_OK)


@router.post("/trackChoice", dependencies=[Depends(require_bearer_token)])
async def track_choice(
    request: TrackFlexibilityChoiceRequest,
    session: Session = Depends(get_study_session)
):
    try:
        flexibility_study_service.track_choice(
            session, request.user_id, request.username, request.study_id, request.id,
            request.phase, request.choice
        )
    except Exception as e:
        session.rollback()
        logger.error(f"Error tracking choice for entry {request.id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(status_code=status.HTTP_200_OK)


@router.post("/completePhaseTracking", dependencies=[Depends(require_bearer_token)])
async def complete_phase_tracking(
    request: CompleteFlexibilityTrackingRequest,
    session: Session = Depends(get_study_session)
):
    """
    Store time and errors of a finished phase.

    Comparison and resolve conclusion phases also store the choice.
    """
    if request.phase is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Property Phase is null.")

    try:
        if request.phase.records_choice:
            flexibility_study_service.complete_phase_tracking_for_comparison_or_resolve_entry(
                session, request.user_id, request.username, request.study_id, request.id,
                request.phase, request.time, request.errors, request.choice or ""
            )
        else:
            flexibility_study_service.complete_phase_tracking_for_entry(
                session, request.user_id, request.username, request.study_id, request.id,
                request.phase, request.time, request.errors
            )
    except Exception as e:
        session.rollback()
        logger.error(f"Error completing phase {request.phase.name} for entry {request.id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(status_code=status.HTTP_200_OK)


@router.post("/completeTracking", dependencies=[Depends(require_bearer_token)])
async def complete_tracking(
    request: CompleteFlexibilityTrackingRequest,
    session: Session = Depends(get_study_session)
):
    try:
        flexibility_study_service.complete_tracking_for_entry(
            session, request.user_id, request.username, request.study_id, request.id,
            request.time, request.errors
        )
    except Exception as e:
        session.rollback()
        logger.error(f"Error completing entry {request.id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(status_code=status.HTTP_200_OK)
