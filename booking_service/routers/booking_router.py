from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import List, Annotated

from .. import schemas
from ..exceptions import InternalError, InvalidTransitionError, NotFoundError, ValidationError
from ..service import BookingService

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_booking_service(request: Request) -> BookingService:
    """
    Returns the service built by the application lifespan.
    """
    return request.app.state.booking_service


ServiceDep = Annotated[BookingService, Depends(get_booking_service)]


def validate_booking_id(booking_id: int) -> int:
    if booking_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid booking ID format"
        )
    return booking_id


@router.post("/", response_model=schemas.BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(booking: schemas.BookingCreate, service: ServiceDep):
    """
    Create a new booking. High-value bookings get a background credit check.
    """
    if booking.user_id <= 0 or booking.service_id <= 0 or booking.price <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="UserID, ServiceID, and Price are required and must be positive values"
        )

    try:
        return await service.create_booking(
            user_id=booking.user_id,
            service_id=booking.service_id,
            price=booking.price
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"An error occurred while creating the booking: {e}"
        )


@router.get("/", response_model=List[schemas.BookingRead])
async def read_bookings(
        service: ServiceDep,
        sort: str = "",
        high_value: str = Query("", alias="high-value"),
):
    """
    Get all bookings, optionally only high-value ones, sorted by price or date.
    """
    try:
        return await service.get_all_bookings(sort=sort, high_value_only=high_value == "true")
    except InternalError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/{booking_id}", response_model=schemas.BookingRead)
async def read_booking(booking_id: Annotated[int, Depends(validate_booking_id)], service: ServiceDep):
    try:
        return await service.get_booking_by_id(booking_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    except InternalError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.delete("/{booking_id}", response_model=schemas.BookingRead)
async def cancel_booking(booking_id: Annotated[int, Depends(validate_booking_id)], service: ServiceDep):
    """
    Cancel a booking. Confirmed bookings cannot be canceled.
    """
    try:
        return await service.cancel_booking(booking_id)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    except InternalError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
