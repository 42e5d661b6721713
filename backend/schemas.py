# backend/schemas.py
from enum import Enum
from pydantic import BaseModel, Field, model_validator


class BlankSpace(BaseModel):
    """A fillable region embedded in the markup as a blank-space marker."""

    id: str
    position: int = Field(description="Offset of the marker in the current markup")
    length: int = Field(description="Underlying token length, capped for display")
    filled: bool = False
    content: str | None = None

    @model_validator(mode="after")
    def content_only_when_filled(self):
        if self.filled and self.content is None:
            raise ValueError("filled blank space needs content")
        if not self.filled and self.content is not None:
            raise ValueError("unfilled blank space cannot carry content")
        return self


class TemplateVariable(BaseModel):
    key: str
    value: str | None = None


class PlaceholderCategory(str, Enum):
    DATE = "date"
    NAME = "name"
    ADDRESS = "address"
    AMOUNT = "amount"
    REFERENCE = "reference"
    OTHER = "other"


class DetectedPlaceholder(BaseModel):
    """A placeholder found while previewing an uploaded template."""

    id: str
    order: int = Field(ge=1, description="1-based position in reading order")
    position: int
    original_text: str
    description: str
    category: PlaceholderCategory = PlaceholderCategory.OTHER
    field: str | None = Field(default=None, description="Suggested record field")
    filled: bool = False
    value: str = ""


class FillValidation(BaseModel):
    is_valid: bool
    total: int
    filled_count: int
    unfilled_count: int
    completion: float = Field(description="Percentage of placeholders filled, 0-100")
    unfilled: list[DetectedPlaceholder] = []


class AutoFillResult(BaseModel):
    markup: str
    filled_ids: list[str] = []
    unfilled_ids: list[str] = []
