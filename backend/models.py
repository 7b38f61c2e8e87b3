"""Redding Backend - Pydantic Models"""

from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class CanonicalIncident(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    type: str = "Unknown"
    parent: str = "Unknown"
    parentTypeId: Optional[Union[int, float, str]] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    zone: str = "Unknown"
    datetime: Optional[str] = None  # ISO-8601, UTC, "Z" suffix
    address: Optional[str] = None

    def to_payload(self, lite: bool = False) -> dict:
        if lite:
            return self.model_dump(exclude={"parentTypeId"})
        return self.model_dump()


class AggregateReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    updated: str
    hours: int
    total: int
    categories: dict[str, int]
    zones: dict[str, int]
    incidents: list[CanonicalIncident]
    lite: bool = Field(default=False, exclude=True)

    def to_payload(self) -> dict:
        return {
            "updated": self.updated,
            "hours": self.hours,
            "total": self.total,
            "categories": dict(self.categories),
            "zones": dict(self.zones),
            "incidents": [i.to_payload(lite=self.lite) for i in self.incidents],
        }


class NotifyResponse(BaseModel):
    new: int
    sent: bool


class ErrorResponse(BaseModel):
    error: str
