"""
Linear equation schemas.
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Tuple

from algespace.core.exceptions import ExerciseError

TOLERANCE = 1e-9


class Variable(BaseModel):
    """A named variable and, where known, its value in the solution."""
    name: str = Field(..., description="Variable name as shown to the user (e.g., 'x')")
    value: Optional[float] = Field(None, description="Value of the variable in the solution")

    class Config:
        frozen = True


class Term(BaseModel):
    """A coefficient times a variable, or a constant when variable is None."""
    coefficient: float = Field(..., description="Coefficient of the term")
    variable: Optional[str] = Field(None, description="Variable name, None for a constant term")

    class Config:
        frozen = True

    @property
    def is_constant(self) -> bool:
        return self.variable is None

    def evaluate(self, assignment: Dict[str, float]) -> float:
        if self.variable is None:
            return self.coefficient
        if self.variable not in assignment:
            raise ExerciseError(f"No value for variable '{self.variable}'")
        return self.coefficient * assignment[self.variable]


class LinearEquation(BaseModel):
    """left_terms = right_terms"""
    left_terms: List[Term] = Field(..., description="Terms on the left-hand side")
    right_terms: List[Term] = Field(..., description="Terms on the right-hand side")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "left_terms": [{"coefficient": 1, "variable": "x"}],
                "right_terms": [{"coefficient": 2, "variable": "y"}, {"coefficient": 3}]
            }
        }

    def evaluate(self, assignment: Dict[str, float]) -> float:
        """Left side minus right side under the given assignment."""
        left = sum(term.evaluate(assignment) for term in self.left_terms)
        right = sum(term.evaluate(assignment) for term in self.right_terms)
        return left - right

    def coefficient_of(self, name: str) -> float:
        """Coefficient of a variable once everything is moved to the left side."""
        left = sum(term.coefficient for term in self.left_terms if term.variable == name)
        right = sum(term.coefficient for term in self.right_terms if term.variable == name)
        return left - right

    def constant(self) -> float:
        """Constant once every variable is moved to the left side."""
        left = sum(term.coefficient for term in self.left_terms if term.is_constant)
        right = sum(term.coefficient for term in self.right_terms if term.is_constant)
        return right - left

    def variables(self) -> List[str]:
        names: List[str] = []
        for term in self.left_terms + self.right_terms:
            if term.variable is not None and term.variable not in names:
                names.append(term.variable)
        return names

    def is_satisfied_by(self, assignment: Dict[str, float]) -> bool:
        return abs(self.evaluate(assignment)) <= TOLERANCE


class LinearSystem(BaseModel):
    """Two linear equations in two variables."""
    first: LinearEquation
    second: LinearEquation

    class Config:
        frozen = True

    def solve(self, first_name: str, second_name: str) -> Tuple[float, float]:
        """
        Solve the system with Cramer's rule.

        Raises:
            ExerciseError: If the system has no unique solution
        """
        a1 = self.first.coefficient_of(first_name)
        b1 = self.first.coefficient_of(second_name)
        c1 = self.first.constant()
        a2 = self.second.coefficient_of(first_name)
        b2 = self.second.coefficient_of(second_name)
        c2 = self.second.constant()

        determinant = a1 * b2 - a2 * b1
        if abs(determinant) <= TOLERANCE:
            raise ExerciseError(f"System in {first_name}, {second_name} has no unique solution")

        return (c1 * b2 - c2 * b1) / determinant, (a1 * c2 - a2 * c1) / determinant

    def is_satisfied_by(self, assignment: Dict[str, float]) -> bool:
        return self.first.is_satisfied_by(assignment) and self.second.is_satisfied_by(assignment)
