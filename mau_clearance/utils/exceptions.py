"""
Custom exceptions for the clearance application
"""

from typing import Any, Dict, Optional


class ClearanceException(Exception):
    """Base exception for the clearance application"""

    status_code = 500
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ClearanceException):
    """Validation error"""
    status_code = 400


class MalformedCodeError(ValidationError):
    """Certificate code does not have the expected shape"""
    pass


class NotFoundError(ClearanceException):
    """Requested record does not exist"""
    status_code = 404


class PreconditionFailedError(ClearanceException):
    """Operation is not allowed in the current state"""
    status_code = 400


class ClearanceWindowClosedError(PreconditionFailedError):
    """Clearance window is closed"""
    status_code = 403


class ClearanceIncompleteError(PreconditionFailedError):
    """Clearance is not fully approved"""
    pass


class ConflictError(ClearanceException):
    """Conflicting write"""
    status_code = 409


class DuplicateClearanceError(ConflictError):
    """Student already started the clearance process"""
    pass


class CertificateIdCollisionError(ConflictError):
    """Could not mint a unique certificate ID"""
    retryable = True


class StorageError(ClearanceException):
    """Database error"""
    status_code = 503
    retryable = True


class ConcurrentUpdateError(StorageError):
    """Record kept changing underneath the writer"""
    pass


class CertificateRenderError(ClearanceException):
    """Certificate was stored but the document could not be rendered"""

    def __init__(self, message: str, certificate_id: str):
        super().__init__(message, {'certificate_id': certificate_id})
        self.certificate_id = certificate_id


class EmailError(ClearanceException):
    """Email service error"""
    pass
