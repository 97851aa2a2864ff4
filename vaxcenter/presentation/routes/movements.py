from flask import Blueprint, request

from vaxcenter.presentation.routes.api_helpers import invalid_body, json_body, respond, service

bp = Blueprint('movements', __name__)

META_FIELDS = ('moved_by', 'reason', 'temperature_maintained', 'batch_number', 'expiry_date')


@bp.post('/movements')
def record_movement():
    data = json_body()
    if data is None:
        return invalid_body()
    meta = {key: data[key] for key in META_FIELDS if key in data}
    return respond(service().record_movement(
        data.get('from_center_id'),
        data.get('to_center_id'),
        data.get('vaccine_name'),
        data.get('quantity'),
        data.get('movement_type'),
        meta,
    ))


@bp.get('/movements')
def movement_history():
    return respond(service().movement_history(
        center_id=request.args.get('center_id') or None,
        vaccine_name=request.args.get('vaccine_name') or None,
        movement_type=request.args.get('movement_type') or None,
        limit=request.args.get('limit', 100, type=int),
    ))
