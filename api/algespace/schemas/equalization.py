"""
Equalization exercise schemas.
"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from algespace.models.enums import EqualizationItemType


class EqualizationItem(BaseModel):
    """An item that can be placed on a scale: a fruit or a weight."""
    name: str = Field(..., description="Image name of the item (e.g., 'apple', 'weight50')")
    weight: int = Field(..., ge=0, description="Weight of a single item in grams")
    amount: int = Field(1, ge=0, description="Multiplicity of the item on its shelf")
    item_type: EqualizationItemType = Field(EqualizationItemType.WEIGHT, description="Kind of the item")

    class Config:
        frozen = True


class EqualizationVariable(BaseModel):
    """A fruit standing for a variable."""
    name: str = Field(..., description="Image name of the fruit")
    weight: int = Field(..., gt=0, description="True weight of the fruit in grams")
    amount: int = Field(..., ge=0, description="Number of fruits on the shelf")

    class Config:
        frozen = True

    def to_item(self, item_type: EqualizationItemType) -> EqualizationItem:
        return EqualizationItem(name=self.name, weight=self.weight, amount=1, item_type=item_type)


class EqualizationEquation(BaseModel):
    """isolated variable = coefficient * second variable + constant"""
    coefficient: int = Field(..., ge=0, description="Number of second-variable fruits")
    constant: int = Field(0, ge=0, description="Sum of the weights in grams")

    class Config:
        frozen = True


class EqualizationExercise(BaseModel):
    """
    A system of two equations that both isolate the same variable.

    The game asks the user to build both right-hand sides on a balance
    scale, simplify it, and then solve for both variables.
    """
    id: int = Field(..., description="Exercise ID")
    isolated_variable: EqualizationVariable
    second_variable: EqualizationVariable
    first_equation: EqualizationEquation
    second_equation: EqualizationEquation
    weights: List[EqualizationItem] = Field(default_factory=list, description="Weights on the shelf")
    maximum_capacity: Optional[int] = Field(None, gt=0, description="Items per pan, defaults to the configured capacity")
    equalization_hints: List[str] = Field(default_factory=list)
    simplification_hints: List[str] = Field(default_factory=list)
    second_variable_hints: List[str] = Field(default_factory=list)
    isolated_variable_hints: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "isolated_variable": {"name": "apple", "weight": 150, "amount": 4},
                "second_variable": {"name": "kiwi", "weight": 50, "amount": 6},
                "first_equation": {"coefficient": 3, "constant": 0},
                "second_equation": {"coefficient": 1, "constant": 100},
                "weights": [{"name": "weight100", "weight": 100, "amount": 2}]
            }
        }

    @model_validator(mode="after")
    def check_solution(self):
        for equation in (self.first_equation, self.second_equation):
            expected = equation.coefficient * self.second_variable.weight + equation.constant
            if expected != self.isolated_variable.weight:
                raise ValueError(
                    f"Exercise {self.id}: {self.isolated_variable.name} weighs "
                    f"{self.isolated_variable.weight}, equation gives {expected}"
                )
        if self.first_equation.coefficient == self.second_equation.coefficient:
            raise ValueError(f"Exercise {self.id}: equations must differ in the second variable")
        return self
