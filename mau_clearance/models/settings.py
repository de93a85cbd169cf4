"""
Clearance window settings model
"""

from datetime import datetime, timedelta
from typing import Optional
from mau_clearance.models.database import db
from mau_clearance.utils.helpers import utcnow

DEFAULT_WINDOW_DAYS = 5


def default_window(now: datetime):
    """Window opening tomorrow at midnight and closing at the end of its fifth day"""
    start = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    end = (start + timedelta(days=DEFAULT_WINDOW_DAYS - 1)).replace(
        hour=23, minute=59, second=59, microsecond=999999)
    return start, end


class ClearanceSettings(db.Model):
    """Singleton row holding the clearance window schedule and overrides"""
    __tablename__ = 'clearance_settings'

    id = db.Column(db.Integer, primary_key=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    manually_opened = db.Column(db.Boolean, nullable=False, default=False)
    emergency_closed = db.Column(db.Boolean, nullable=False, default=False)
    updated_by = db.Column(db.String(200), nullable=True)
    last_updated = db.Column(db.DateTime, default=utcnow)

    @classmethod
    def get_or_create(cls, now: Optional[datetime] = None) -> 'ClearanceSettings':
        """Return the settings row, creating the default window if none exists"""
        settings = cls.query.order_by(cls.id).first()
        if settings is None:
            start, end = default_window(now or utcnow())
            settings = cls(start_date=start, end_date=end, is_active=True,
                           manually_opened=False, emergency_closed=False)
            db.session.add(settings)
            db.session.commit()
        return settings
