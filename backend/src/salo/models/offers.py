"""Models for offers."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from salo.models.common import ApiModel

OfferCategory = Literal["general", "time-based", "membership-based", "exclusive"]
DiscountType = Literal["percentage", "fixed"]


class Offer(ApiModel):
    id: str = Field(alias="_id")
    title: str
    code: str
    description: str | None = None
    discount_type: DiscountType = "percentage"
    discount_value: float = 0
    is_active: bool = True
    category: OfferCategory = "general"
    start_date: datetime | None = None
    end_date_time: datetime | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    membership_type: str | None = None
