"""
MAU Clearance Application Factory
Clearance tracking and certificate verification service
"""

import os
from typing import Any, Dict, Optional
import click
from flask import Flask
from flask_cors import CORS
from mau_clearance.models import db, init_db
from mau_clearance.routes import clearance_bp, staff_bp, certificate_bp, system_bp
from mau_clearance.utils import setup_logging, log_info, log_error


def create_app(config_name: str = None, config_overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Application factory

    Args:
        config_name: Configuration name (development, production, testing)
        config_overrides: Extra settings applied after the named configuration

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    from mau_clearance.config import config
    config_class = config.get(config_name, config['default'])
    app.config.from_object(config_class)
    if config_overrides:
        app.config.update(config_overrides)
    config_class.init_app(app)

    # Initialize extensions
    db.init_app(app)
    CORS(app)

    # Setup logging
    with app.app_context():
        setup_logging()
        log_info(f"Application initialized ({config_name})")

    # Register blueprints
    app.register_blueprint(system_bp, url_prefix='/api')
    app.register_blueprint(clearance_bp, url_prefix='/api/clearance')
    app.register_blueprint(staff_bp, url_prefix='/api/staff')
    app.register_blueprint(certificate_bp, url_prefix='/api/certificates')

    register_commands(app)

    # Create database tables
    with app.app_context():
        try:
            init_db()
            log_info("Database tables created successfully")
        except Exception as e:
            log_error("Database initialization warning", e)

    return app


def register_commands(app: Flask) -> None:
    """Attach maintenance commands to the flask CLI"""

    @app.cli.command('purge-certificates')
    @click.option('--retention-days', type=int, default=None,
                  help='Keep certificates that expired within this many days.')
    def purge_certificates(retention_days):
        """Delete certificates that expired before the retention window."""
        from mau_clearance.services import CertificateService
        removed = CertificateService.purge_expired(retention_days)
        click.echo(f"Removed {removed} expired certificates")
