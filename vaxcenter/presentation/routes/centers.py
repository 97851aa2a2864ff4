"""
Center routes - registration, verification, capacity and dashboards
"""

from flask import Blueprint

from vaxcenter.presentation.routes.api_helpers import invalid_body, json_body, query_flag, respond, service

bp = Blueprint('centers', __name__)


@bp.post('/centers')
def register_center():
    data = json_body()
    if data is None:
        return invalid_body()
    return respond(service().register_center(
        data.get('center_name'),
        data.get('email'),
        data.get('phone'),
        data.get('district'),
        data.get('address'),
        data.get('daily_capacity'),
    ))


@bp.get('/centers')
def list_centers():
    return respond(service().list_centers(query_flag('verified')))


@bp.get('/centers/overview')
def center_management_data():
    return respond(service().center_management_data())


@bp.post('/centers/<int:center_id>/verify')
def verify_center(center_id):
    return respond(service().verify_center(center_id))


@bp.delete('/centers/<int:center_id>')
def reject_center(center_id):
    return respond(service().reject_center(center_id))


@bp.put('/centers/<int:center_id>/capacity')
def set_daily_capacity(center_id):
    data = json_body()
    if data is None:
        return invalid_body()
    return respond(service().set_daily_capacity(center_id, data.get('daily_capacity')))


@bp.get('/centers/<int:center_id>/dashboard')
def center_dashboard(center_id):
    return respond(service().center_dashboard(center_id))
