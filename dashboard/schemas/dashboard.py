"""
schemas/dashboard.py - View, filter, sort and pagination selections

Business Rules:
- Empty strings / None mean "no filter"
- Default sort is most recent contact first
- Pages are 1-based; items_per_page must be positive

Called by: state.py, services/client_filters.py, __main__.py
Depends on: pydantic, config.py (default page size)
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import settings

ViewType = Literal["list", "cards", "kanban", "facial-analysis", "archived"]

SortField = Literal[
    "last_contact",
    "name",
    "age",
    "status",
    "facial_analysis_status",
    "photos_liked",
    "photos_viewed",
    "created_at",
]


class FilterState(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str = ""
    age_min: int | None = None
    age_max: int | None = None
    analysis_status: str = ""
    lead_stage: str = ""

    @model_validator(mode="after")
    def _age_bounds_ordered(self) -> FilterState:
        if self.age_min is not None and self.age_max is not None and self.age_min > self.age_max:
            raise ValueError("age_min must not exceed age_max")
        return self

    @property
    def is_empty(self) -> bool:
        return not (
            self.source
            or self.age_min is not None
            or self.age_max is not None
            or self.analysis_status
            or self.lead_stage
        )


class SortState(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: SortField = "last_contact"
    order: Literal["asc", "desc"] = "desc"


class PaginationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_page: int = Field(default=1, ge=1)
    items_per_page: int = Field(default_factory=lambda: settings.items_per_page, gt=0)
