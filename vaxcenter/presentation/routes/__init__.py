"""
Routes package for the vaccination center system
JSON blueprints, one per area, all mounted under /api
"""

from flask import jsonify
from werkzeug.exceptions import HTTPException

from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.routes")

API_PREFIX = '/api'


def _register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def http_error(exc):
        return jsonify({
            "success": False,
            "error_code": exc.name.lower().replace(' ', '_'),
            "message": exc.description,
        }), exc.code

    @app.errorhandler(500)
    def internal_error(exc):
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        return jsonify({
            "success": False,
            "error_code": "internal_error",
            "message": "An internal error occurred.",
        }), 500


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    from . import appointments, stock, movements, centers, citizens, staff, reports

    for module in (appointments, stock, movements, centers, citizens, staff, reports):
        app.register_blueprint(module.bp, url_prefix=API_PREFIX)

    _register_error_handlers(app)

    logger.info(f"Registered {len(app.blueprints)} API blueprints under {API_PREFIX}")
