"""Client-side validation for the event and offer forms.

Checks run before any request is sent; failures raise FormError with one
message per problem.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from salo.errors import FormError
from salo.models.events import EventCategory
from salo.models.offers import DiscountType, OfferCategory

F = TypeVar("F", bound=BaseModel)


class EventForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    event_name: str = Field(min_length=1)
    category: EventCategory = EventCategory.TEAM_BATTLE
    start_date_time: datetime
    end_date_time: datetime
    description: str = Field(min_length=1)
    image: str = Field(min_length=1)
    number_of_teams: int | None = None
    participation_per_team: int | None = None
    total_spots: int | None = None

    @model_validator(mode="after")
    def check_dates_and_capacity(self) -> EventForm:
        if self.end_date_time <= self.start_date_time:
            raise ValueError("End time must be after start time")
        if self.category == EventCategory.TEAM_BATTLE:
            if self.number_of_teams is None or self.number_of_teams < 2:
                raise ValueError("Team battles need at least 2 teams")
            if self.participation_per_team is None or self.participation_per_team < 1:
                raise ValueError("Team battles need at least 1 player per team")
        elif self.total_spots is None or self.total_spots < 1:
            raise ValueError("Single battles need at least 1 spot")
        return self

    def to_payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "eventName": self.event_name,
            "category": self.category.value,
            "startDateTime": self.start_date_time.isoformat(),
            "endDateTime": self.end_date_time.isoformat(),
            "description": self.description,
            "image": self.image,
        }
        if self.category == EventCategory.TEAM_BATTLE:
            body["numberOfTeams"] = self.number_of_teams
            body["participationPerTeam"] = self.participation_per_team
        else:
            body["totalSpots"] = self.total_spots
        return body


class OfferForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1)
    code: str = Field(min_length=1)
    description: str | None = None
    category: OfferCategory = "general"
    discount_type: DiscountType = "percentage"
    discount_value: float
    is_active: bool = True
    start_date: datetime | None = None
    end_date_time: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    membership_type: str | None = None

    @model_validator(mode="after")
    def check_offer(self) -> OfferForm:
        if self.discount_value <= 0:
            raise ValueError("Discount value must be greater than 0")
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.category == "membership-based" and not self.membership_type:
            raise ValueError("Membership-based offers need a membership type")
        if self.start_date and self.end_date_time and self.end_date_time <= self.start_date:
            raise ValueError("End date must be after start date")
        return self

    def to_payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "title": self.title,
            "code": self.code,
            "category": self.category,
            "discountType": self.discount_type,
            "discountValue": self.discount_value,
            "isActive": self.is_active,
        }
        optional = {
            "description": self.description,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDateTime": self.end_date_time.isoformat() if self.end_date_time else None,
            "usageLimit": self.usage_limit,
            "membershipType": self.membership_type,
        }
        body.update({k: v for k, v in optional.items() if v is not None})
        return body


def _describe(err: dict) -> str:
    field = ".".join(str(p) for p in err.get("loc", ()))
    msg = err.get("msg", "invalid")
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    if err.get("type") == "missing":
        msg = "This field is required"
    return f"{field}: {msg}" if field else msg


def validate_form(form_cls: type[F], data: dict[str, Any]) -> F:
    """Build ``form_cls`` from raw input or raise FormError."""
    try:
        return form_cls.model_validate(data)
    except ValidationError as e:
        raise FormError([_describe(err) for err in e.errors()]) from None

