from pydantic import BaseModel, Field
import datetime

from .models import BookingStatus


class BookingBase(BaseModel):
    user_id: int
    service_id: int
    # Finite values only
    price: float = Field(allow_inf_nan=False)


class BookingCreate(BookingBase):
    # Positivity is checked by the router so it can answer 400
    pass


class BookingRead(BookingBase):
    id: int
    status: BookingStatus
    created_at: datetime.datetime
    updated_at: datetime.datetime

    class Config:
        from_attributes = True
