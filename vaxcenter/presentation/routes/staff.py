from flask import Blueprint

from vaxcenter.presentation.routes.api_helpers import invalid_body, json_body, respond, service

bp = Blueprint('staff', __name__)


@bp.get('/centers/<int:center_id>/staff')
def list_staff(center_id):
    return respond(service().list_staff(center_id))


@bp.post('/staff')
def add_staff():
    data = json_body()
    if data is None:
        return invalid_body()
    return respond(service().add_staff(
        data.get('center_id'),
        data.get('name'),
        data.get('role'),
        data.get('contact'),
    ))


@bp.put('/staff/<int:staff_id>')
def update_staff(staff_id):
    data = json_body()
    if data is None:
        return invalid_body()
    return respond(service().update_staff(staff_id, data.get('name'), data.get('role'), data.get('contact')))


@bp.delete('/staff/<int:staff_id>')
def delete_staff(staff_id):
    return respond(service().delete_staff(staff_id))
