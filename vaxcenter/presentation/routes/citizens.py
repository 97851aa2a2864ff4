from flask import Blueprint, request

from vaxcenter.presentation.routes.api_helpers import invalid_body, json_body, respond, service

bp = Blueprint('citizens', __name__)


@bp.post('/citizens')
def register_citizen():
    data = json_body()
    if data is None:
        return invalid_body()
    return respond(service().register_citizen(
        data.get('full_name'),
        data.get('date_of_birth'),
        data.get('id_type'),
        data.get('id_number'),
        data.get('contact'),
    ))


@bp.get('/citizens/lookup')
def find_citizen():
    return respond(service().find_citizen(
        id_number=request.args.get('id_number') or None,
        contact=request.args.get('contact') or None,
        id_type=request.args.get('id_type') or None,
    ))


@bp.get('/citizens/appointments')
def citizen_appointments():
    return respond(service().citizen_appointments(request.args.get('contact')))
