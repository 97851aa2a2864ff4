#!/usr/bin/env python3
#USE VENV: source venv/bin/activate
"""
Run script for the vaccination center system
"""

from vaxcenter import create_app
from vaxcenter.build import build_database
from vaxcenter.logger import get_logger
import sys
import os
import argparse
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Run 'python generate_env.py' to create a .env file with a secure SECRET_KEY.

logger = get_logger("vaxcenter.run")


def parse_arguments():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Vaccination Center Coordination Service')
    parser.add_argument('--build-only', action='store_true',
                        help='Build database tables (and demo data unless disabled), then exit')
    parser.add_argument('--enable-demo-data', action='store_true', default=True,
                        help='Insert demo centers, citizens, staff and stock (default: enabled)')
    parser.add_argument('--no-demo-data', action='store_false', dest='enable_demo_data',
                        help='Disable demo data insertion')
    parser.add_argument('--wastage-report', action='store_true',
                        help='Print the wastage report for all centers and exit')

    return parser.parse_args()


def print_wastage_report(app):
    from vaxcenter.services.vaccination_service import VaccinationService
    from vaxcenter.utils.report_printer import format_wastage_report

    with app.app_context():
        result = VaccinationService().get_wastage_report()
        if not result.success:
            logger.error(f"Wastage report failed ({result.error_code}): {result.message}")
            return 1
        print(format_wastage_report(result.value))
        return 0


if __name__ == '__main__':
    args = parse_arguments()

    logger.debug("Starting vaccination center service...")
    app = create_app()

    build_database(enable_demo_data=args.enable_demo_data, app=app)

    if args.wastage_report:
        sys.exit(print_wastage_report(app))

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    # FLASK_DEBUG: Enable/disable debug mode (default: False for security)
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')

    # USE_RELOADER: Enable/disable auto-reloader (default: False in production)
    use_reloader = os.environ.get('USE_RELOADER', 'False').lower() in ('true', '1', 'yes', 'on')

    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting server on {host}:{port} (debug={debug_mode}, reloader={use_reloader})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=use_reloader)
