"""
Main application entry point
"""

import os
import sys
from mau_clearance import create_app
from mau_clearance.utils import log_info, log_error

app = create_app()


def main():
    """Main application entry point"""
    try:
        # Test database connection
        with app.app_context():
            from sqlalchemy import text
            from mau_clearance.models import db
            try:
                db.session.execute(text('SELECT 1'))
                log_info("Database connection available")
            except Exception as e:
                log_error("Database connection error", e)
                return False

        debug_mode = os.environ.get('FLASK_DEBUG', 'True').lower() in ['true', '1', 'on']
        port = int(os.environ.get('PORT', 5000))
        log_info(f"Starting server on http://localhost:{port} (debug {'on' if debug_mode else 'off'})")

        app.run(
            host='0.0.0.0',
            port=port,
            debug=debug_mode
        )
        return True

    except Exception as e:
        with app.app_context():
            log_error("Failed to start application", e)
        return False


if __name__ == '__main__':
    success = main()
    if not success:
        sys.exit(1)
