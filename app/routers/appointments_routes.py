# app/routers/appointments_routes.py

from datetime import datetime
from typing import Callable, List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session

from app.db import get_session
from app.models import User
from app.schemas import AppointmentCreate, AppointmentPublic
from app.auth import get_current_user
from app.core import get_clock
from app.jobs import JobQueue, get_job_queue, relay_pending_jobs
from app import scheduling


router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


@router.get("", response_model=List[AppointmentPublic])
def list_my_appointments(
    page: int = 1,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return scheduling.list_appointments(session, current_user["id"], page, clock())


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    now = clock()
    appointment = scheduling.create_appointment(
        session,
        client_id=current_user["id"],
        provider_id=appt.provider_id,
        raw_date=appt.date,
        now=now,
    )
    provider = session.get(User, appointment.provider_id)
    return scheduling.appointment_public(appointment, provider, now)


@router.delete("/{appt_id}", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    clock: Callable[[], datetime] = Depends(get_clock),
    queue: JobQueue = Depends(get_job_queue),
):
    now = clock()
    appointment = scheduling.cancel_appointment(
        session,
        appointment_id=appt_id,
        client_id=current_user["id"],
        now=now,
    )

    # Relay the staged cancellation mail once the response is sent
    background_tasks.add_task(relay_pending_jobs, session.get_bind(), queue)

    provider = session.get(User, appointment.provider_id)
    return scheduling.appointment_public(appointment, provider, now)
