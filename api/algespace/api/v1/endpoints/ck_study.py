"""
Conceptual knowledge study endpoints (equalization game tracking).
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session
import logging

from algespace.core.database import get_study_session
from algespace.core.security import require_bearer_token
from algespace.schemas.study import (
    CompleteCKTrackingRequest,
    CreateCKEntryRequest,
    TrackCKActionRequest,
    TrackCKHintRequest,
)
from algespace.services import ck_study_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/ck-study",
    tags=["ck-study"],
    dependencies=[Depends(require_bearer_token)],
)


@router.put("/createEntry", response_model=int)
async def create_entry(
    request: CreateCKEntryRequest,
    session: Session = Depends(get_study_session)
):
    try:
        return ck_study_service.initialize_entry(session, request)
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating CK entry for user {request.user_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/addActionToEntry")
async def add_action_to_entry(
    request: TrackCKActionRequest,
    session: Session = Depends(get_study_session)
):
    try:
        ck_study_service.add_action_to_entry(
            session, request.user_id, request.username, request.study_id, request.id,
            request.phase, request.action
        )
    except Exception as e:
        session.rollback()
        logger.error(f"Error tracking CK action for entry {request.id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(status_code=status.HTTP_200_OK)


@router.post("/trackHint")
async def track_hint(
    request: TrackCKHintRequest,
    session: Session = Depends(get_study_session)
):
    try:
        ck_study_service.track_hint(
            session, request.user_id, request.username, request.study_id, request.id, request.phase
        )
    except Exception as e:
        session.rollback()
        logger.error(f"Error tracking hint for entry {request.id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(status_code=status.HTTP_200_OK)


@router.post("/completePhaseTracking")
async def complete_phase_tracking(
    request: CompleteCKTrackingRequest,
    session: Session = Depends(get_study_session)
):
    if request.phase is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Property Phase is null.")

    try:
        ck_study_service.complete_phase_tracking_for_entry(
            session, request.user_id, request.username, request.study_id, request.id,
            request.phase, request.time, request.errors, request.hints
        )
    except Exception as e:
        session.rollback()
        logger.error(f"Error completing CK phase {request.phase.name} for entry {request.id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(status_code=status.HTTP_200_OK)


@router.post("/completeTracking")
async def complete_tracking(
    request: CompleteCKTrackingRequest,
    session: Session = Depends(get_study_session)
):
    try:
        ck_study_service.complete_tracking_for_entry(
            session, request.user_id, request.username, request.study_id, request.id,
            request.time, request.errors
        )
    except Exception as e:
        session.rollback()
        logger.error(f"Error completing CK entry {request.id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(status_code=status.HTTP_200_OK)
