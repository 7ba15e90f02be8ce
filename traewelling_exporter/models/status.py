"""Typed view of the Traewelling ``GET /statuses`` response.

Only the fields the exporter turns into labels are required.  The
upstream payload carries many more; unknown keys are ignored so that
additions on the Traewelling side never break a scrape.  Optional fields
are informational: a malformed value there decodes as None.

Traewelling speaks camelCase on the wire.  Older API revisions used
``user``/``business``/``trip`` where newer ones send ``userId``/
``businessId``/``tripId``; both spellings are accepted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
)
from pydantic.alias_generators import to_camel


def _none_if_invalid(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    try:
        return handler(value)
    except ValidationError:
        return None


# Informational fields that no label depends on.  A malformed value
# decodes as None instead of failing the whole snapshot.
LooseInt = Annotated[int | None, WrapValidator(_none_if_invalid)]
LooseStr = Annotated[str | None, WrapValidator(_none_if_invalid)]
LooseBool = Annotated[bool | None, WrapValidator(_none_if_invalid)]
LooseDatetime = Annotated[datetime | None, WrapValidator(_none_if_invalid)]


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        # Train numbers are sometimes sent as bare integers
        coerce_numbers_to_str=True,
    )


class Stopover(_UpstreamModel):
    name: str
    id: LooseInt = None
    eva_identifier: LooseInt = None
    arrival: LooseDatetime = None
    arrival_planned: LooseDatetime = None
    arrival_real: LooseDatetime = None
    departure: LooseDatetime = None
    departure_planned: LooseDatetime = None
    departure_real: LooseDatetime = None
    platform: LooseStr = None
    is_arrival_delayed: LooseBool = None
    is_departure_delayed: LooseBool = None
    cancelled: LooseBool = None


class Train(_UpstreamModel):
    category: str
    number: str
    line_name: str
    distance: int  # metres
    duration: int  # minutes
    speed: float  # km/h
    origin: Stopover
    destination: Stopover
    trip_id: LooseInt = Field(
        default=None, validation_alias=AliasChoices("tripId", "trip", "trip_id")
    )
    hafas_id: LooseStr = None
    points: LooseInt = None


class Event(_UpstreamModel):
    id: int
    name: str


class UpstreamStatus(_UpstreamModel):
    """One active check-in."""

    user_id: int = Field(validation_alias=AliasChoices("userId", "user", "user_id"))
    username: str
    train: Train
    id: LooseInt = None
    business_id: LooseInt = Field(
        default=None,
        validation_alias=AliasChoices("businessId", "business", "business_id"),
    )
    created_at: LooseDatetime = None
    event: Annotated[Event | None, WrapValidator(_none_if_invalid)] = None


class ActiveStatusesResponse(_UpstreamModel):
    data: list[UpstreamStatus]
