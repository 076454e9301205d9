"""
Study models.

Tracking rows of both study kinds live in static tables with one nullable
text column per phase. Action columns accumulate a ",\n"-joined log, choice
columns hold the latest decision and phase columns hold a JSON object.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone


class FlexibilityStudy(SQLModel, table=True):
    """Flexibility study table - one row per configured study."""
    __tablename__ = "flexibility_study"

    study_id: int = Field(primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FlexibilityStudyExercise(SQLModel, table=True):
    """Ordered exercise list of a flexibility study."""
    __tablename__ = "flexibility_study_exercise"

    id: Optional[int] = Field(default=None, primary_key=True)
    study_id: int = Field(foreign_key="flexibility_study.study_id", index=True)
    flexibility_id: int  # Position of the exercise inside the study
    exercise_type: int  # FlexibilityStudyExerciseType value
    exercise_id: int


class FlexibilityStudyData(SQLModel, table=True):
    """Tracking entry for one attempt at a flexibility exercise."""
    __tablename__ = "flexibility_study_data"

    id: Optional[int] = Field(default=None, primary_key=True)
    study_id: int = Field(index=True)
    user_id: int = Field(index=True)
    username: str = Field(max_length=255)
    flexibility_id: int
    exercise_id: int
    exercise_type: int  # FlexibilityStudyExerciseType value
    agent_condition: int  # AgentCondition value
    agent_type: Optional[int] = None  # AgentType value, only with an agent condition
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Action columns (FlexibilityExerciseActionPhase)
    selected_method: Optional[str] = None
    efficiency_selection_actions: Optional[str] = None
    system_matching_actions: Optional[str] = None
    self_explanation_actions: Optional[str] = None
    transformation_actions: Optional[str] = None
    equalization_actions: Optional[str] = None
    substitution_actions: Optional[str] = None
    elimination_actions: Optional[str] = None
    first_solution_actions: Optional[str] = None
    equation_selection: Optional[str] = None
    second_solution_actions: Optional[str] = None

    # Choice columns (FlexibilityExerciseChoicePhase)
    self_explanation_choice: Optional[str] = None
    first_solution_choice: Optional[str] = None
    second_solution_choice: Optional[str] = None
    comparison_choice: Optional[str] = None
    resolving_choice: Optional[str] = None

    # Phase columns (FlexibilityExercisePhase), JSON {"time", "errors"[, "choice"]}
    efficiency_selection: Optional[str] = None
    system_selection: Optional[str] = None
    self_explanation: Optional[str] = None
    transformation: Optional[str] = None
    equalization: Optional[str] = None
    substitution: Optional[str] = None
    elimination: Optional[str] = None
    first_solution: Optional[str] = None
    second_solution: Optional[str] = None
    comparison: Optional[str] = None
    transformation_resolve: Optional[str] = None
    equalization_resolve: Optional[str] = None
    substitution_resolve: Optional[str] = None
    elimination_resolve: Optional[str] = None
    resolve_conclusion: Optional[str] = None

    total_time: Optional[float] = None
    total_errors: Optional[int] = None


class CKStudyData(SQLModel, table=True):
    """Tracking entry for one attempt at a conceptual knowledge exercise."""
    __tablename__ = "ck_study_data"

    id: Optional[int] = Field(default=None, primary_key=True)
    study_id: int = Field(index=True)
    user_id: int = Field(index=True)
    username: str = Field(max_length=255)
    exercise_type: int  # CKExerciseType value
    exercise_id: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Phase columns (EqualizationPhase), JSON {"time", "errors", "hints"}
    equalization: Optional[str] = None
    simplification: Optional[str] = None
    first_solution: Optional[str] = None
    second_solution: Optional[str] = None

    # Action columns
    equalization_actions: Optional[str] = None
    simplification_actions: Optional[str] = None
    first_solution_actions: Optional[str] = None
    second_solution_actions: Optional[str] = None

    total_time: Optional[float] = None
    total_errors: Optional[int] = None
    total_hints: Optional[int] = None
