"""
Exercise definition models.
"""
from sqlmodel import SQLModel, Field, Column, JSON, UniqueConstraint
from typing import Optional
from datetime import datetime, timezone


class EqualizationExerciseRecord(SQLModel, table=True):
    """Equalization exercise table - one serialized exercise definition per row."""
    __tablename__ = "equalization_exercise"

    id: int = Field(primary_key=True)  # Exercise id used by the frontend
    payload: dict = Field(sa_column=Column(JSON, nullable=False))  # EqualizationExercise as JSON
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FlexibilityExerciseRecord(SQLModel, table=True):
    """Flexibility exercise table - exercise ids are unique per exercise type."""
    __tablename__ = "flexibility_exercise"
    __table_args__ = (
        UniqueConstraint("exercise_type", "exercise_id", name="flexibility_exercise_type_id_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    exercise_type: int = Field(index=True)  # FlexibilityExerciseType value
    exercise_id: int
    payload: dict = Field(sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
