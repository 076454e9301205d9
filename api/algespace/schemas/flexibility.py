"""
Flexibility training exercise schemas.
"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from algespace.core.exceptions import ExerciseError
from algespace.models.enums import IsolatedIn, Method
from algespace.schemas.math import LinearEquation, LinearSystem, Variable


class ComparisonMethod(BaseModel):
    """Worked solution steps of an alternative method, shown when comparing."""
    method: Method
    steps: List[str] = Field(..., min_length=3, description="Solution steps, at least three")

    class Config:
        frozen = True


class SelfExplanation(BaseModel):
    """Self-explanation task offered after a method is chosen."""
    method: Method
    question: str
    options: List[str] = Field(default_factory=list)
    correct_options: List[int] = Field(default_factory=list, description="Indices into options")

    class Config:
        frozen = True


class MatchableSystem(BaseModel):
    """A system of equations offered in a matching exercise."""
    first_equation: LinearEquation
    second_equation: LinearEquation
    is_solution: bool = False

    class Config:
        frozen = True


class FlexibilityExerciseBase(BaseModel):
    """Fields shared by all flexibility exercises."""
    id: int = Field(..., description="Exercise ID, unique per exercise type")
    first_equation: LinearEquation
    second_equation: LinearEquation
    first_variable: Variable
    second_variable: Variable
    first_equation_is_isolated_in: IsolatedIn = IsolatedIn.NONE
    second_equation_is_isolated_in: IsolatedIn = IsolatedIn.NONE
    agent_message_for_first_solution: Optional[str] = None
    agent_message_for_second_solution: Optional[str] = None
    agent_message_for_comparison: Optional[str] = None
    agent_message_for_resolving: Optional[str] = None
    agent_message_for_self_explanation: Optional[str] = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_solution(self):
        if self.first_variable.value is None or self.second_variable.value is None:
            raise ValueError(f"Exercise {self.id}: both variables need a solution value")
        assignment = {
            self.first_variable.name: self.first_variable.value,
            self.second_variable.name: self.second_variable.value,
        }
        for equation in (self.first_equation, self.second_equation):
            if not equation.is_satisfied_by(assignment):
                raise ValueError(f"Exercise {self.id}: solution does not satisfy {equation}")
        try:
            LinearSystem(first=self.first_equation, second=self.second_equation).solve(
                self.first_variable.name, self.second_variable.name
            )
        except ExerciseError as e:
            raise ValueError(f"Exercise {self.id}: {e}")
        return self


class SuitabilityExercise(FlexibilityExerciseBase):
    suitable_methods: List[Method] = Field(..., min_length=1)
    comparison_methods: List[ComparisonMethod] = Field(default_factory=list)


class EfficiencyExercise(FlexibilityExerciseBase):
    efficient_methods: List[Method] = Field(..., min_length=1)
    transformation_required: bool = False
    question: Optional[str] = None
    self_explanation_tasks: List[SelfExplanation] = Field(default_factory=list)
    use_with_tip: bool = False

    @model_validator(mode="after")
    def check_self_explanations(self):
        methods = [task.method for task in self.self_explanation_tasks]
        if len(methods) != len(set(methods)):
            raise ValueError(f"Exercise {self.id}: one self-explanation task per method")
        return self


class MatchingExercise(FlexibilityExerciseBase):
    method: Method
    alternative_systems: List[MatchableSystem] = Field(default_factory=list)
    self_explanation_task: Optional[SelfExplanation] = None
    question: Optional[str] = None


class FlexibilityExercisesResponse(BaseModel):
    """All flexibility training exercises, grouped by type."""
    suitability_exercises: List[SuitabilityExercise] = Field(default_factory=list)
    efficiency_exercises: List[EfficiencyExercise] = Field(default_factory=list)
    matching_exercises: List[MatchingExercise] = Field(default_factory=list)
