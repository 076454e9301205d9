"""
Study tracking schemas.

Bodies use the camelCase keys the frontend sends; snake_case names are
accepted as well.
"""
from pydantic import BaseModel, Field
from typing import Optional

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


class StudyRequest(BaseModel):
    """Identifies the user and study a tracking call belongs to."""
    user_id: int = Field(..., alias="userId", description="User ID")
    username: str = Field(..., min_length=1, description="Username")
    study_id: int = Field(..., alias="studyId", description="Study ID")

    class Config:
        populate_by_name = True


class EntryRequest(StudyRequest):
    """Addresses an existing tracking entry."""
    id: int = Field(..., description="Tracking entry ID returned by createEntry")


class CreateFlexibilityEntryRequest(StudyRequest):
    """Request to create a tracking entry for a flexibility exercise attempt."""
    flexibility_id: int = Field(..., alias="flexibilityId", description="Position of the exercise in the study")
    exercise_id: int = Field(..., alias="exerciseId", description="Exercise ID")
    exercise_type: FlexibilityStudyExerciseType = Field(..., alias="exerciseType")
    agent_condition: AgentCondition = Field(AgentCondition.NONE, alias="agentCondition")
    agent_type: Optional[AgentType] = Field(None, alias="agentType")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "userId": 1,
                "username": "participant01",
                "studyId": 1,
                "flexibilityId": 3,
                "exerciseId": 2,
                "exerciseType": 1,
                "agentCondition": 1,
                "agentType": 4
            }
        }


class TrackFlexibilityActionRequest(EntryRequest):
    """Request to append an action to an action column."""
    phase: FlexibilityExerciseActionPhase
    action: str = Field(..., description="Free-text action description")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "userId": 1,
                "username": "participant01",
                "studyId": 1,
                "id": 12,
                "phase": 0,
                "action": "Substitution"
            }
        }


class TrackFlexibilityChoiceRequest(EntryRequest):
    """Request to overwrite a choice column."""
    phase: FlexibilityExerciseChoicePhase
    choice: str = Field(..., description="Recorded decision (e.g., 'Yes')")


class CompleteFlexibilityTrackingRequest(EntryRequest):
    """Request to complete a phase (phase set) or the whole attempt."""
    phase: Optional[FlexibilityExercisePhase] = None
    time: float = Field(..., ge=0, description="Elapsed time in seconds")
    errors: int = Field(..., ge=0, description="Number of errors")
    choice: Optional[str] = Field(None, description="Choice for comparison and resolve conclusion phases")


class CreateCKEntryRequest(StudyRequest):
    """Request to create a tracking entry for a conceptual knowledge exercise attempt."""
    exercise_type: CKExerciseType = Field(..., alias="exerciseType")
    exercise_id: int = Field(..., alias="exerciseId", description="Exercise ID")


class TrackCKActionRequest(EntryRequest):
    phase: EqualizationPhase
    action: str = Field(..., description="Free-text action description")


class TrackCKHintRequest(EntryRequest):
    phase: EqualizationPhase


class CompleteCKTrackingRequest(EntryRequest):
    phase: Optional[EqualizationPhase] = None
    time: float = Field(..., ge=0, description="Elapsed time in seconds")
    errors: int = Field(..., ge=0, description="Number of errors")
    hints: int = Field(0, ge=0, description="Number of hints opened")


class FlexibilityStudyExerciseResponse(BaseModel):
    """One exercise of a flexibility study."""
    id: int = Field(..., description="Position of the exercise in the study")
    exercise_type: FlexibilityStudyExerciseType = Field(..., alias="exerciseType")
    exercise_id: int = Field(..., alias="exerciseId")

    class Config:
        populate_by_name = True
        from_attributes = True
