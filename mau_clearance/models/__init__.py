"""
Database models initialization
"""

from mau_clearance.models.database import db, storage_guard, init_db
from mau_clearance.models.user import Student, Staff
from mau_clearance.models.clearance import ClearanceRecord
from mau_clearance.models.certificate import Certificate
from mau_clearance.models.settings import ClearanceSettings

# Export all models
__all__ = ['db', 'storage_guard', 'init_db', 'Student', 'Staff',
           'ClearanceRecord', 'Certificate', 'ClearanceSettings']
