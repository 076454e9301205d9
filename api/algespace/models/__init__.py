"""
Models package - imports all models so their tables are registered.
"""
# Import enums first
from algespace.models.enums import (
    Method,
    FlexibilityExerciseType,
    FlexibilityStudyExerciseType,
    CKExerciseType,
    AgentCondition,
    AgentType,
    IsolatedIn,
    SelectedEquation,
    FlexibilityExercisePhase,
    FlexibilityExerciseActionPhase,
    FlexibilityExerciseChoicePhase,
    EqualizationPhase,
    EqualizationItemType,
)

# Import all models
from algespace.models.exercise import EqualizationExerciseRecord, FlexibilityExerciseRecord
from algespace.models.study import (
    FlexibilityStudy,
    FlexibilityStudyExercise,
    FlexibilityStudyData,
    CKStudyData,
)

# Tables per database file
EXERCISE_TABLES = (EqualizationExerciseRecord, FlexibilityExerciseRecord)
STUDY_TABLES = (FlexibilityStudy, FlexibilityStudyExercise, FlexibilityStudyData, CKStudyData)

__all__ = [
    'Method',
    'FlexibilityExerciseType',
    'FlexibilityStudyExerciseType',
    'CKExerciseType',
    'AgentCondition',
    'AgentType',
    'IsolatedIn',
    'SelectedEquation',
    'FlexibilityExercisePhase',
    'FlexibilityExerciseActionPhase',
    'FlexibilityExerciseChoicePhase',
    'EqualizationPhase',
    'EqualizationItemType',
    'EqualizationExerciseRecord',
    'FlexibilityExerciseRecord',
    'FlexibilityStudy',
    'FlexibilityStudyExercise',
    'FlexibilityStudyData',
    'CKStudyData',
    'EXERCISE_TABLES',
    'STUDY_TABLES',
]
