"""
Helper utilities
"""

import calendar
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from flask import current_app


def setup_logging() -> None:
    """Setup application logging"""
    if not current_app.debug:
        # Production logging
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s %(levelname)s %(name)s %(message)s'
        )
    else:
        # Development logging
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s %(levelname)s %(name)s %(message)s'
        )
    current_app.logger.setLevel(logging.DEBUG if current_app.debug else logging.INFO)


def log_error(message: str, exception: Optional[Exception] = None) -> None:
    """
    Log error message

    Args:
        message: Error message
        exception: Exception object
    """
    if exception:
        current_app.logger.error(f"{message}: {str(exception)}")
    else:
        current_app.logger.error(message)


def log_warning(message: str) -> None:
    """Log warning message"""
    current_app.logger.warning(message)


def log_info(message: str) -> None:
    """
    Log info message

    Args:
        message: Info message
    """
    current_app.logger.info(message)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the end of the target month

    Args:
        value: Starting datetime
        months: Number of months to add

    Returns:
        Shifted datetime
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def days_until(target: datetime, now: datetime) -> int:
    """Whole days until target, rounded up; zero or negative once passed"""
    return math.ceil((target - now).total_seconds() / 86400)


def format_duration(duration: Optional[timedelta]) -> Optional[str]:
    """
    Format a duration as "Xd Yh Zm"

    Args:
        duration: Time span

    Returns:
        Formatted string, or None for empty and negative spans
    """
    if not duration or duration.total_seconds() <= 0:
        return None

    total_minutes = int(duration.total_seconds() // 60)
    days, remainder = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)
    return f"{days}d {hours}h {minutes}m"


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """ISO string or None"""
    return value.isoformat() if value else None


def create_response(success: bool, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Create standardized API response

    Args:
        success: Whether operation was successful
        message: Response message
        data: Optional data to include

    Returns:
        Standardized response dictionary
    """
    response = {
        'ok': success,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return response


def error_payload(exc) -> Tuple[Dict[str, Any], int]:
    """
    Response body and status code for a ClearanceException

    Args:
        exc: Raised application exception

    Returns:
        Tuple of (response dictionary, HTTP status)
    """
    details = dict(exc.details or {})
    if exc.retryable:
        details['retryable'] = True
    return create_response(False, exc.message, details or None), exc.status_code
