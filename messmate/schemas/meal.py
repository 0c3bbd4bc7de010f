"""Meal history and attendance schemas."""

from datetime import date as Date, datetime
from typing import List, Optional

from pydantic import Field, computed_field

from messmate.models.enums import BookingStatus, MealType
from messmate.schemas.common import BaseSchema
from messmate.schemas.menu import MenuEntry


class MealMenu(BaseSchema):
    id: str
    name: str
    items: List[MenuEntry] = Field(default_factory=list)


class MealHistoryEntry(BaseSchema):
    """One booked meal as the student sees it in their history."""

    id: str
    booking_id: str
    meal_type: MealType
    status: BookingStatus
    date: Date = Field(validation_alias="booking_date")
    booked_at: datetime = Field(validation_alias="created_at")
    quantity: int
    price: float = Field(validation_alias="final_amount")
    user_rating: Optional[int] = Field(None, validation_alias="feedback_rating")
    feedback: Optional[str] = Field(None, validation_alias="feedback_comment")
    menu_item: Optional[MealMenu] = None

    @computed_field
    @property
    def meal_name(self) -> str:
        return self.menu_item.name if self.menu_item else self.meal_type.value.title()


class MealHistoryResponse(BaseSchema):
    meals: List[MealHistoryEntry]
    total: int
    range: str
    start_date: Date
    end_date: Date


class AttendancePeriod(BaseSchema):
    present: int
    total: int
    percentage: int


class AttendanceDay(BaseSchema):
    date: Date
    attended: bool
    total: int


class AttendanceSummary(BaseSchema):
    this_month: AttendancePeriod
    this_week: AttendancePeriod
    streak: int
    weekly_data: List[AttendanceDay]
