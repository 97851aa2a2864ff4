from flask import Blueprint, request

from vaxcenter.presentation.routes.api_helpers import respond, service

bp = Blueprint('reports', __name__)


@bp.get('/reports/wastage')
def wastage_report():
    """?center_id=1&center_id=2 restricts the report; no parameter covers every center"""
    center_ids = request.args.getlist('center_id')
    scope = None
    if len(center_ids) == 1:
        scope = center_ids[0]
    elif center_ids:
        scope = center_ids
    return respond(service().get_wastage_report(scope))
