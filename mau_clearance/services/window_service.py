"""
Clearance window policy and settings service
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from flask import current_app
from mau_clearance.models import db, storage_guard, ClearanceSettings
from mau_clearance.utils.exceptions import ValidationError
from mau_clearance.utils.helpers import utcnow, isoformat, format_duration, log_info

KIND_EMERGENCY = 'emergency'
KIND_MANUAL = 'manual'
KIND_SCHEDULED = 'scheduled'
KIND_BEFORE_OPENING = 'before_opening'
KIND_AFTER_CLOSING = 'after_closing'
KIND_INACTIVE = 'inactive'

_CACHE_KEY = 'clearance_window_settings'


@dataclass(frozen=True)
class WindowSettings:
    """Detached snapshot of the settings row"""
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    manually_opened: bool = False
    emergency_closed: bool = False
    updated_by: Optional[str] = None
    last_updated: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: ClearanceSettings) -> 'WindowSettings':
        return cls(
            start_date=model.start_date,
            end_date=model.end_date,
            is_active=bool(model.is_active),
            manually_opened=bool(model.manually_opened),
            emergency_closed=bool(model.emergency_closed),
            updated_by=model.updated_by,
            last_updated=model.last_updated,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start_date': isoformat(self.start_date),
            'end_date': isoformat(self.end_date),
            'is_active': self.is_active,
            'manually_opened': self.manually_opened,
            'emergency_closed': self.emergency_closed,
            'updated_by': self.updated_by,
            'last_updated': isoformat(self.last_updated),
        }


@dataclass(frozen=True)
class WindowStatus:
    is_open: bool
    reason: str
    kind: str
    # Time left until closing (scheduled) or until opening (before_opening)
    extra: Optional[timedelta] = None


def is_system_open(settings, now: datetime) -> WindowStatus:
    """
    Decide whether new clearance processes may be started

    Rules are checked in priority order and the first match wins:
    emergency close, manual open, then the schedule when it is active.

    Args:
        settings: Object exposing the window settings attributes
        now: Current time

    Returns:
        WindowStatus
    """
    if settings.emergency_closed:
        return WindowStatus(False, "System is emergency closed by administration", KIND_EMERGENCY)

    if settings.manually_opened:
        return WindowStatus(True, "System is manually opened by administration", KIND_MANUAL)

    if settings.is_active:
        if settings.start_date <= now <= settings.end_date:
            return WindowStatus(True, "Clearance system is open", KIND_SCHEDULED,
                                settings.end_date - now)
        if now < settings.start_date:
            return WindowStatus(False, "Clearance system has not opened yet", KIND_BEFORE_OPENING,
                                settings.start_date - now)
        return WindowStatus(False, "Clearance system has closed", KIND_AFTER_CLOSING)

    return WindowStatus(False, "Clearance system is not scheduled to open", KIND_INACTIVE)


def describe_window(settings: WindowSettings, status: WindowStatus) -> Dict[str, Any]:
    """Public status payload"""
    return {
        'is_open': status.is_open,
        'message': status.reason,
        'type': status.kind,
        'schedule': {
            'start_date': isoformat(settings.start_date),
            'end_date': isoformat(settings.end_date),
            'is_active': settings.is_active,
        },
        'time_remaining': format_duration(status.extra) if status.kind == KIND_SCHEDULED else None,
        'opens_in': format_duration(status.extra) if status.kind == KIND_BEFORE_OPENING else None,
        'next_opening': isoformat(settings.start_date) if status.kind == KIND_BEFORE_OPENING else None,
        'last_closed': isoformat(settings.end_date) if status.kind == KIND_AFTER_CLOSING else None,
    }


class WindowSettingsService:
    """Loads, caches and updates the singleton window settings"""

    @staticmethod
    def get_settings(now: Optional[datetime] = None) -> WindowSettings:
        """
        Current settings, created with the default window if absent

        The snapshot is cached on the application and dropped on every
        admin update.
        """
        cached = current_app.extensions.get(_CACHE_KEY)
        if cached is not None:
            return cached

        with storage_guard("loading clearance settings"):
            snapshot = WindowSettings.from_model(ClearanceSettings.get_or_create(now))
        current_app.extensions[_CACHE_KEY] = snapshot
        return snapshot

    @staticmethod
    def invalidate_cache() -> None:
        current_app.extensions.pop(_CACHE_KEY, None)

    @staticmethod
    def current_status(now: Optional[datetime] = None) -> WindowStatus:
        now = now or utcnow()
        return is_system_open(WindowSettingsService.get_settings(now), now)

    @staticmethod
    def update_schedule(start_date: datetime, end_date: datetime, is_active: Optional[bool] = None,
                        updated_by: Optional[str] = None, now: Optional[datetime] = None) -> WindowSettings:
        """
        Replace the scheduled window

        Manual overrides are reset whenever the schedule changes.

        Raises:
            ValidationError: If the window is inverted or already over
        """
        now = now or utcnow()
        if start_date >= end_date:
            raise ValidationError("End date must be after start date")
        if end_date < now:
            raise ValidationError("End date cannot be in the past")

        with storage_guard("updating clearance settings"):
            settings = ClearanceSettings.get_or_create(now)
            settings.start_date = start_date
            settings.end_date = end_date
            if is_active is not None:
                settings.is_active = is_active
            settings.manually_opened = False
            settings.emergency_closed = False
            settings.updated_by = updated_by
            settings.last_updated = now
            db.session.commit()
            snapshot = WindowSettings.from_model(settings)

        WindowSettingsService.invalidate_cache()
        log_info(f"Clearance window set to {isoformat(start_date)} - {isoformat(end_date)} by {updated_by}")
        return snapshot

    @staticmethod
    def toggle_override(action: str, updated_by: Optional[str] = None,
                        now: Optional[datetime] = None) -> WindowSettings:
        """
        Manually open or emergency close the system

        Args:
            action: 'open' or 'close'
        """
        if action not in ('open', 'close'):
            raise ValidationError("Action must be 'open' or 'close'")

        now = now or utcnow()
        with storage_guard("toggling clearance window"):
            settings = ClearanceSettings.get_or_create(now)
            settings.manually_opened = action == 'open'
            settings.emergency_closed = action == 'close'
            settings.updated_by = updated_by
            settings.last_updated = now
            db.session.commit()
            snapshot = WindowSettings.from_model(settings)

        WindowSettingsService.invalidate_cache()
        log_info(f"Clearance system {'manually opened' if action == 'open' else 'emergency closed'} by {updated_by}")
        return snapshot
