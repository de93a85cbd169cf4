"""
Services package initialization
"""

from mau_clearance.services.email_service import EmailService
from mau_clearance.services.notification_service import NotificationService
from mau_clearance.services.student_directory import StudentDirectory
from mau_clearance.services.window_service import WindowSettingsService, is_system_open
from mau_clearance.services.clearance_service import ClearanceService, BulkUpdateResult
from mau_clearance.services.certificate_service import (
    CertificateService, IssuedCertificate, VerificationResult
)

__all__ = [
    'EmailService', 'NotificationService', 'StudentDirectory',
    'WindowSettingsService', 'is_system_open',
    'ClearanceService', 'BulkUpdateResult',
    'CertificateService', 'IssuedCertificate', 'VerificationResult'
]
