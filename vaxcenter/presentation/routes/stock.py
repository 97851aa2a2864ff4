"""
Stock routes - vaccine types, operator reconciliation and wastage
"""

from flask import Blueprint

from vaxcenter.presentation.routes.api_helpers import invalid_body, json_body, respond, service

bp = Blueprint('stock', __name__)


@bp.post('/stock')
def add_vaccine_type():
    data = json_body()
    if data is None:
        return invalid_body()
    return respond(service().add_vaccine_type(
        data.get('center_id'),
        data.get('vaccine_name'),
        data.get('initial_quantity', 0),
    ))


@bp.put('/stock/<int:entry_id>')
def adjust_stock(entry_id):
    data = json_body()
    if data is None:
        return invalid_body()
    return respond(service().adjust_stock(
        entry_id,
        data.get('remaining_stock'),
        data.get('used_doses'),
        data.get('wasted_doses'),
        adjusted_by=data.get('adjusted_by'),
        reason=data.get('reason'),
    ))


@bp.delete('/stock/<int:entry_id>')
def remove_vaccine_type(entry_id):
    return respond(service().remove_vaccine_type(entry_id))


@bp.post('/stock/wastage')
def record_wastage():
    data = json_body()
    if data is None:
        return invalid_body()
    return respond(service().record_wastage(
        data.get('center_id'),
        data.get('vaccine_name'),
        data.get('quantity'),
    ))


@bp.get('/centers/<int:center_id>/vaccines')
def available_vaccines(center_id):
    return respond(service().available_vaccines(center_id))
