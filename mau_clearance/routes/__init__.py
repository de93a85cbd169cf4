"""
Routes package initialization
"""

from mau_clearance.routes.clearance_routes import clearance_bp
from mau_clearance.routes.staff_routes import staff_bp
from mau_clearance.routes.certificate_routes import certificate_bp
from mau_clearance.routes.system_routes import system_bp

__all__ = ['clearance_bp', 'staff_bp', 'certificate_bp', 'system_bp']
