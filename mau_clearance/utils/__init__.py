"""
Utilities package initialization
"""

from mau_clearance.utils.exceptions import (
    ClearanceException, ValidationError, MalformedCodeError, NotFoundError,
    PreconditionFailedError, ClearanceWindowClosedError, ClearanceIncompleteError,
    ConflictError, DuplicateClearanceError, CertificateIdCollisionError,
    StorageError, ConcurrentUpdateError, CertificateRenderError, EmailError
)
from mau_clearance.utils.helpers import (
    setup_logging, log_error, log_warning, log_info, utcnow, add_months,
    days_until, format_duration, isoformat, create_response, error_payload
)

__all__ = [
    'ClearanceException', 'ValidationError', 'MalformedCodeError', 'NotFoundError',
    'PreconditionFailedError', 'ClearanceWindowClosedError', 'ClearanceIncompleteError',
    'ConflictError', 'DuplicateClearanceError', 'CertificateIdCollisionError',
    'StorageError', 'ConcurrentUpdateError', 'CertificateRenderError', 'EmailError',
    'setup_logging', 'log_error', 'log_warning', 'log_info', 'utcnow', 'add_months',
    'days_until', 'format_duration', 'isoformat', 'create_response', 'error_payload'
]
