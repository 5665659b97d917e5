"""GLOBEBOARD FILE PURPOSE
Purpose: wire and storage schemas (registrations, dashboards, webhooks, payloads).
Hot path: yes (every request validates/serializes through these).
Feature flags: none.
Failure mode: pydantic validation errors; callers translate to ValidationError.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class EventKind(str, Enum):
    REGISTER = "REGISTER"
    CHANGE = "CHANGE"
    DELETE = "DELETE"
    INVOKE = "INVOKE"


FEATURE_FLAGS = ("temperature", "precipitation", "capital", "coordinates", "population", "area")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_millis(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FeatureSet(BaseModel):
    model_config = ConfigDict(strict=True, populate_by_name=True, extra="ignore")

    temperature: bool = False
    precipitation: bool = False
    capital: bool = False
    coordinates: bool = False
    population: bool = False
    area: bool = False
    target_currencies: list[str] = Field(default_factory=list, alias="targetCurrencies")

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in FEATURE_FLAGS) and not self.target_currencies


class RegistrationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    country: str = ""
    iso_code: str = Field(default="", alias="isoCode")
    features: FeatureSet


class Registration(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str
    country: str
    iso_code: str = Field(alias="isoCode")
    features: FeatureSet
    last_change: datetime = Field(default_factory=utc_now, alias="lastChange")

    @field_serializer("last_change")
    def _ser_last_change(self, value: datetime) -> str:
        return iso_millis(value)

    def external(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"owner_id"})


class Coordinates(BaseModel):
    latitude: str
    longitude: str


class FeatureValues(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    temperature: str | None = None
    precipitation: str | None = None
    capital: str | None = None
    coordinates: Coordinates | None = None
    population: int | None = None
    area: str | None = None
    target_currencies: dict[str, float] | None = Field(default=None, alias="targetCurrencies")


class DashboardSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    country: str
    iso_code: str = Field(alias="isoCode")
    features: FeatureValues
    last_retrieval: datetime = Field(alias="lastRetrieval")

    @field_serializer("last_retrieval")
    def _ser_last_retrieval(self, value: datetime) -> str:
        return iso_millis(value)

    def external(self) -> dict[str, Any]:
        # Absent (not null) encodes "feature not requested".
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Webhook(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str
    url: str
    country: str | None = None
    events: list[EventKind] = Field(default_factory=lambda: list(EventKind), alias="event")

    def external(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"owner_id"}, exclude_none=True)


class NotificationField(BaseModel):
    name: str
    value: str
    inline: bool


class NotificationPayload(BaseModel):
    title: str
    color: int
    timestamp: str
    fields: list[NotificationField]
    endpoint: str
    event: EventKind
