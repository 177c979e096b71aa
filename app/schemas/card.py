"""Pydantic schemas for bingo cards."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CardCell(BaseModel):
    """
    A single task cell on the grid.

    Unknown keys are kept so the client gets its cells back as sent.
    """
    model_config = ConfigDict(extra="allow")

    text: str = ""
    category: Optional[str] = None


class CardSave(BaseModel):
    """Schema for creating or replacing the caller's card."""
    size: int = Field(..., ge=1)
    grid: List[List[CardCell]]
    completed: List[List[bool]]

    @model_validator(mode="after")
    def check_dimensions(self) -> "CardSave":
        """Grid and completion matrix must both be size x size."""
        for field_name in ("grid", "completed"):
            matrix = getattr(self, field_name)
            if len(matrix) != self.size or any(len(row) != self.size for row in matrix):
                raise ValueError(f"{field_name} must be a {self.size}x{self.size} matrix")
        return self

    def stored_grid(self) -> List[List[Dict[str, Any]]]:
        """Cells exactly as the client sent them."""
        return [[cell.model_dump(exclude_unset=True) for cell in row] for row in self.grid]


class CardResponse(BaseModel):
    """Schema for card responses."""
    owner_id: int
    size: int
    grid: List[List[Dict[str, Any]]]
    completed: List[List[bool]]
    created_at: datetime
    updated_at: datetime
