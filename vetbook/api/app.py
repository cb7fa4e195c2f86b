"""FastAPI application factory for the booking API."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, HTTPException, Query

from vetbook.api.auth import get_principal
from vetbook.api.errors import register_error_handlers
from vetbook.booking.engine import BookingEngine
from vetbook.booking.state_machine import ReservationStateMachine
from vetbook.config import Settings
from vetbook.models.schemas import (
    AvailabilityUpdate,
    BookingRequest,
    CalendarDay,
    Principal,
    RescheduleRequest,
    Reservation,
    ReservationPage,
    ReservationSnapshot,
    ReservationStatus,
    StatusUpdate,
)
from vetbook.storage.database import VetBookDB


def create_app(db: VetBookDB | None = None, settings: Settings | None = None) -> FastAPI:
    """Create FastAPI app with optional database injection.

    Args:
        db: Database instance. If None, opens ``settings.database_path``.
        settings: Runtime settings. Defaults to the database's settings.

    Returns:
        Configured FastAPI application.
    """
    if db is None:
        db = VetBookDB(settings)
        db.init_schema()
    settings = settings or db.settings

    app = FastAPI(title="Vetbook Booking API", version="0.1.0")
    register_error_handlers(app)

    engine = BookingEngine.from_db(db)
    app.state.db = db
    app.state.settings = settings
    app.state.engine = engine
    app.state.state_machine = ReservationStateMachine(
        engine.reservations, engine.calendar, engine.directory
    )

    # --- Availability Routes ---

    @app.get("/availability", response_model=list[CalendarDay])
    def list_availability(
        doctor_id: str = Query(alias="doctorId"),
        day: date | None = Query(default=None, alias="date"),
        start_date: date | None = Query(default=None, alias="startDate"),
        end_date: date | None = Query(default=None, alias="endDate"),
    ) -> list[CalendarDay]:
        """List a doctor's calendar days for one date, a range, or the coming window."""
        if day is not None:
            start = end = day
        elif start_date is not None and end_date is not None:
            start, end = start_date, end_date
        else:
            start = datetime.now(ZoneInfo(settings.timezone)).date()
            end = start + timedelta(days=settings.availability_window_days)
        return app.state.engine.list_availability(doctor_id, start, end)

    @app.post("/availability", response_model=CalendarDay)
    def update_availability(
        data: AvailabilityUpdate,
        principal: Principal = Depends(get_principal),
    ) -> CalendarDay:
        """Create or update one of the calling doctor's calendar days."""
        try:
            return app.state.engine.update_availability(principal, data)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    # --- Reservation Routes ---

    @app.post("/reservations", response_model=ReservationSnapshot, status_code=201)
    def create_reservation(
        data: BookingRequest,
        principal: Principal = Depends(get_principal),
    ) -> ReservationSnapshot:
        """Book a slot with a doctor for one of the caller's pets."""
        return app.state.engine.book(principal, data)

    @app.get("/reservations", response_model=ReservationPage)
    def list_reservations(
        status: ReservationStatus | None = None,
        page: int = Query(default=1, ge=1),
        limit: int | None = Query(default=None, ge=1),
        principal: Principal = Depends(get_principal),
    ) -> ReservationPage:
        """List the caller's reservations (made by a user, or assigned to a doctor)."""
        return app.state.engine.list_reservations(
            principal, status=status, page=page, limit=limit
        )

    @app.get("/reservations/{reservation_id}", response_model=Reservation)
    def get_reservation(
        reservation_id: str,
        principal: Principal = Depends(get_principal),
    ) -> Reservation:
        """Get a reservation the caller made or is assigned to."""
        return app.state.engine.get_reservation(principal, reservation_id)

    @app.put("/reservations/{reservation_id}", response_model=ReservationSnapshot)
    def update_reservation(
        reservation_id: str,
        data: StatusUpdate,
        principal: Principal = Depends(get_principal),
    ) -> ReservationSnapshot:
        """Change a reservation's status (doctor workflow, or cancellation)."""
        reservation = app.state.state_machine.transition(
            principal,
            reservation_id,
            data.status,
            cancellation_reason=data.cancellation_reason,
        )
        return reservation.snapshot()

    @app.post(
        "/reservations/{reservation_id}/reschedule",
        response_model=ReservationSnapshot,
    )
    def reschedule_reservation(
        reservation_id: str,
        data: RescheduleRequest,
        principal: Principal = Depends(get_principal),
    ) -> ReservationSnapshot:
        """Move a pending or confirmed reservation to another slot."""
        return app.state.engine.reschedule(
            principal, reservation_id, data.appointment_date, data.appointment_time
        )

    @app.get("/health")
    def health() -> dict:
        """Health check endpoint."""
        return {"status": "ok"}

    return app
