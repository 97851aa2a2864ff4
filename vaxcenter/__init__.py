from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
from vaxcenter.logger import get_logger
from vaxcenter.business.core.key_locks import KeyedLockRegistry

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
locks = KeyedLockRegistry()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["2000 per day", "200 per hour"],
    storage_uri="memory://"  # Use Redis when running several workers
)


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(config_overrides=None):
    from pathlib import Path

    base_dir = Path(__file__).parent.parent

    app = Flask(__name__)

    logger = get_logger("vaxcenter")
    logger.info("Initializing Flask application")

    # SECURITY: Require SECRET_KEY in environment - no fallback
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')

    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'vaxcenter.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # HTTPS/TLS Configuration
    app.config['ENABLE_HTTPS'] = _env_flag('ENABLE_HTTPS', 'True')
    app.config['FORCE_HTTPS_REDIRECT'] = _env_flag('FORCE_HTTPS_REDIRECT', 'True')

    # Coordination settings
    app.config['LOCK_TIMEOUT_SECONDS'] = float(os.environ.get('LOCK_TIMEOUT_SECONDS', '10'))
    app.config['DEFAULT_DAILY_CAPACITY'] = int(os.environ.get('DEFAULT_DAILY_CAPACITY', '100'))
    app.config['WASTAGE_RISK_THRESHOLD'] = float(os.environ.get('WASTAGE_RISK_THRESHOLD', '0.05'))
    app.config['WASTAGE_PREDICTION_RATIO'] = float(os.environ.get('WASTAGE_PREDICTION_RATIO', '0.10'))

    # Rate limiting
    app.config['RATELIMIT_ENABLED'] = _env_flag('RATELIMIT_ENABLED', 'True')
    app.config['BOOKING_RATE_LIMIT'] = os.environ.get('BOOKING_RATE_LIMIT', '30 per minute')

    if config_overrides:
        app.config.update(config_overrides)

    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    if app.config['ENABLE_HTTPS']:
        logger.info("HTTPS enforcement enabled")
        if app.config['FORCE_HTTPS_REDIRECT']:
            logger.info("Automatic HTTP to HTTPS redirect enabled")
    else:
        logger.warning("HTTPS enforcement DISABLED - Acceptable for development only!")

    logger.debug(f"Database configured: {app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0]}")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    locks.init_app(app)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from vaxcenter.data.core.center import Center
    from vaxcenter.data.core.citizen import Citizen
    from vaxcenter.data.core.staff import Staff
    from vaxcenter.data.stock.vaccine_stock import VaccineStock
    from vaxcenter.data.stock.vaccine_movement import VaccineMovement
    from vaxcenter.data.stock.stock_reconciliation import StockReconciliation
    from vaxcenter.data.scheduling.appointment import Appointment
    from vaxcenter.data.scheduling.appointment_status_change import AppointmentStatusChange

    logger.debug("Models imported and registered")

    from vaxcenter.presentation.routes import init_app as init_routes
    init_routes(app)

    @app.before_request
    def enforce_https():
        """Redirect HTTP requests to HTTPS if HTTPS enforcement is enabled"""
        if app.config.get('ENABLE_HTTPS') and app.config.get('FORCE_HTTPS_REDIRECT'):
            from flask import request, redirect

            if not request.is_secure and not request.headers.get('X-Forwarded-Proto') == 'https':
                url = request.url.replace('http://', 'https://', 1)
                return redirect(url, code=301)

    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Cache-Control'] = 'no-store'

        if app.config.get('ENABLE_HTTPS'):
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response

    logger.info("Flask application initialization complete")

    return app
