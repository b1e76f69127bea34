from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class SelectionModel(BaseModel):
    year: Optional[int] = None
    country: Optional[str] = None
    focus: List[str] = Field(default_factory=list)
