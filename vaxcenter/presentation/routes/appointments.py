"""
Appointment routes - booking and the appointment lifecycle
"""

from flask import Blueprint, current_app, request

from vaxcenter import limiter
from vaxcenter.presentation.routes.api_helpers import invalid_body, json_body, respond, service

bp = Blueprint('appointments', __name__)


def booking_rate_limit():
    return current_app.config.get('BOOKING_RATE_LIMIT', '30 per minute')


@bp.post('/appointments')
@limiter.limit(booking_rate_limit)
def book_appointment():
    data = json_body()
    if data is None:
        return invalid_body()
    return respond(service().book_appointment(
        data.get('center_id'),
        data.get('citizen_id'),
        data.get('vaccine_type'),
        data.get('appointment_date'),
        data.get('dose_number'),
    ))


@bp.post('/appointments/<int:appointment_id>/confirm')
def confirm_appointment(appointment_id):
    return respond(service().confirm_appointment(appointment_id))


@bp.post('/appointments/<int:appointment_id>/administer')
def administer_dose(appointment_id):
    data = json_body() or {}
    return respond(service().administer_dose(appointment_id, data.get('vaccine_name')))


@bp.post('/appointments/<int:appointment_id>/cancel')
def cancel_appointment(appointment_id):
    return respond(service().cancel_appointment(appointment_id))


@bp.get('/centers/<int:center_id>/capacity')
def remaining_capacity(center_id):
    return respond(service().remaining_capacity(center_id, request.args.get('date')))
