"""
Certificate issuance and verification
"""

import hashlib
import hmac
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from mau_clearance.models import db, storage_guard, Certificate, ClearanceRecord, Student
from mau_clearance.models.certificate import (
    CERTIFICATE_ACTIVE, CERTIFICATE_EXPIRED, CERTIFICATE_REVOKED
)
from mau_clearance.models.clearance import APPROVED, genuine_history
from mau_clearance.services.pdf_service import render_certificate_pdf
from mau_clearance.services.student_directory import StudentDirectory
from mau_clearance.utils.exceptions import (
    CertificateIdCollisionError, CertificateRenderError, ClearanceIncompleteError,
    MalformedCodeError, NotFoundError, StorageError
)
from mau_clearance.utils.helpers import (
    utcnow, add_months, days_until, isoformat, log_error, log_info, log_warning
)

CERTIFICATE_PREFIX = "MAU-CERT-"
SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 6
HASH_LENGTH = 8
# Codes with fewer dash-separated segments are rejected before any lookup
MIN_CODE_SEGMENTS = 4

NOT_FOUND_MESSAGE = "Certificate not found or invalid"


def generate_certificate_id(now: datetime) -> str:
    """MAU-CERT-YYYYMMDD-XXXXXX"""
    suffix = ''.join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{CERTIFICATE_PREFIX}{now.strftime('%Y%m%d')}-{suffix}"


def compute_security_hash(student_id: int, certificate_id: str, secret: str) -> str:
    """Keyed digest binding a certificate to its student"""
    digest = hmac.new(secret.encode('utf-8'),
                      f"{student_id}{certificate_id}".encode('utf-8'),
                      hashlib.sha256).hexdigest()
    return digest[:HASH_LENGTH].upper()


def parse_certificate_code(code: Any) -> Tuple[str, str]:
    """
    Split a public code into certificate ID and security hash

    Raises:
        MalformedCodeError: If the code does not have enough segments
    """
    if not isinstance(code, str) or not code.strip():
        raise MalformedCodeError("Invalid certificate code format")

    parts = code.strip().split('-')
    if len(parts) < MIN_CODE_SEGMENTS or not all(parts):
        raise MalformedCodeError("Invalid certificate code format")

    security_hash = parts.pop()
    return '-'.join(parts), security_hash


@dataclass
class IssuedCertificate:
    document: bytes
    certificate_id: str
    expiry_date: datetime
    certificate: Certificate


@dataclass
class VerificationResult:
    valid: bool
    message: str
    certificate: Optional[Dict[str, Any]] = None
    student: Optional[Dict[str, Any]] = None
    approval_history: List[Dict[str, Any]] = field(default_factory=list)
    days_until_expiry: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'valid': self.valid, 'message': self.message}
        if self.certificate is not None:
            data['certificate'] = dict(
                self.certificate,
                student=self.student,
                days_until_expiry=self.days_until_expiry,
                approval_history=self.approval_history,
            )
        return data


class CertificateService:
    """Clearance certificate operations"""

    @staticmethod
    def _secret() -> str:
        secret = current_app.config.get('CERTIFICATE_SECRET') or current_app.config.get('SECRET_KEY')
        if not secret:
            raise RuntimeError("CERTIFICATE_SECRET is not configured")
        return secret

    @staticmethod
    def verification_url(certificate: Certificate) -> str:
        base = current_app.config.get('FRONTEND_URL', 'http://localhost:3000').rstrip('/')
        return f"{base}/verify/{certificate.code}"

    @staticmethod
    def issue_certificate(student_id: int, now: Optional[datetime] = None) -> IssuedCertificate:
        """
        Mint, store and render a certificate for a fully cleared student

        Raises:
            NotFoundError: If the student does not exist
            ClearanceIncompleteError: If the clearance is not Approved
            CertificateIdCollisionError: If no unique ID could be minted
            StorageError: If the certificate could not be stored
            CertificateRenderError: If the stored certificate could not be rendered
        """
        now = now or utcnow()
        student = StudentDirectory.find_student_by_id(student_id)

        with storage_guard("loading clearance"):
            record = ClearanceRecord.query.filter_by(student_id=student.id).first()
        if record is None or record.overall_status != APPROVED:
            raise ClearanceIncompleteError(
                "Clearance not completed. Please complete all clearance procedures first.",
                {'overall_status': record.overall_status if record else None},
            )

        certificate = CertificateService._mint(student, now)
        document = CertificateService.render(certificate, student)
        return IssuedCertificate(document, certificate.certificate_id, certificate.expiry_date, certificate)

    @staticmethod
    def _mint(student: Student, now: datetime) -> Certificate:
        attempts = current_app.config.get('CERTIFICATE_ID_RETRIES', 5)
        months = current_app.config.get('CERTIFICATE_VALIDITY_MONTHS', 1)
        secret = CertificateService._secret()

        for attempt in range(1, attempts + 1):
            certificate_id = generate_certificate_id(now)
            certificate = Certificate(
                certificate_id=certificate_id,
                student_id=student.id,
                security_hash=compute_security_hash(student.id, certificate_id, secret),
                issue_date=now,
                expiry_date=add_months(now, months),
                status=CERTIFICATE_ACTIVE,
                verification_count=0,
            )
            db.session.add(certificate)
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                log_warning(f"Certificate ID {certificate_id} already taken ({attempt}/{attempts})")
                continue
            except SQLAlchemyError as e:
                db.session.rollback()
                raise StorageError("Storage failure while issuing certificate. Please retry.") from e

            log_info(f"Certificate {certificate_id} issued to student {student.student_number}")
            return certificate

        raise CertificateIdCollisionError("Could not generate a unique certificate ID. Please retry.")

    @staticmethod
    def render(certificate: Certificate, student: Optional[Student] = None) -> bytes:
        """Render the PDF for a stored certificate"""
        student = student or StudentDirectory.find_student_by_id(certificate.student_id)
        try:
            return render_certificate_pdf(
                student,
                certificate,
                CertificateService.verification_url(certificate),
                current_app.config.get('INSTITUTION_NAME', 'Mekdela Amba University'),
                current_app.config.get('VERIFY_HINT_URL', 'mau.edu.et/verify'),
            )
        except Exception as e:
            log_error(f"Rendering certificate {certificate.certificate_id} failed", e)
            raise CertificateRenderError(
                "Certificate was issued but the document could not be generated. Please retry the download.",
                certificate.certificate_id,
            ) from e

    @staticmethod
    def get_certificate(certificate_id: str) -> Certificate:
        with storage_guard("loading certificate"):
            certificate = Certificate.query.filter_by(certificate_id=certificate_id).first()
        if certificate is None:
            raise NotFoundError("Certificate not found")
        return certificate

    @staticmethod
    def render_existing(certificate_id: str) -> Tuple[Certificate, bytes]:
        """Re-render a stored certificate without minting a new one"""
        certificate = CertificateService.get_certificate(certificate_id)
        return certificate, CertificateService.render(certificate)

    @staticmethod
    def list_certificates(student_id: int) -> List[Certificate]:
        with storage_guard("listing certificates"):
            return (Certificate.query
                    .filter_by(student_id=student_id)
                    .order_by(Certificate.issue_date.desc(), Certificate.id.desc())
                    .all())

    @staticmethod
    def verify_certificate(code: str, now: Optional[datetime] = None) -> VerificationResult:
        """
        Check a public certificate code

        A wrong ID and a wrong hash both come back as not found. Found
        certificates are lazily expired and have their verification
        counter bumped, whether or not they are still valid.

        Raises:
            MalformedCodeError: If the code cannot be split into ID and hash
        """
        now = now or utcnow()
        certificate_id, security_hash = parse_certificate_code(code)

        with storage_guard("verifying certificate"):
            certificate = Certificate.query.filter_by(
                certificate_id=certificate_id, security_hash=security_hash
            ).first()

            if certificate is None:
                log_info(f"Verification miss for code {code}")
                return VerificationResult(False, NOT_FOUND_MESSAGE)

            if now > certificate.expiry_date and certificate.status == CERTIFICATE_ACTIVE:
                certificate.status = CERTIFICATE_EXPIRED
                log_info(f"Certificate {certificate_id} expired on {isoformat(certificate.expiry_date)}")

            certificate.verification_count = Certificate.verification_count + 1
            certificate.last_verified = now
            db.session.commit()

            record = ClearanceRecord.query.filter_by(student_id=certificate.student_id).first()
            student = certificate.student
            certificate_data = certificate.to_dict()
            status = certificate.status
            expiry_date = certificate.expiry_date
            history = genuine_history(record.approval_history if record else [])
            student_data = {
                'student_number': student.student_number,
                'full_name': student.full_name,
                'department': student.department,
                'year': student.year,
            } if student else None

        days_left = days_until(expiry_date, now)
        if status == CERTIFICATE_ACTIVE:
            message = f"Valid certificate (expires in {days_left} days)"
        elif status == CERTIFICATE_REVOKED:
            message = "Certificate has been revoked"
        else:
            message = "Certificate has expired"

        return VerificationResult(
            valid=status == CERTIFICATE_ACTIVE,
            message=message,
            certificate=certificate_data,
            student=student_data,
            approval_history=history,
            days_until_expiry=days_left,
        )

    @staticmethod
    def purge_expired(retention_days: Optional[int] = None, now: Optional[datetime] = None) -> int:
        """
        Delete certificates whose expiry is older than the retention window

        Returns:
            Number of certificates removed
        """
        now = now or utcnow()
        if retention_days is None:
            retention_days = current_app.config.get('CERTIFICATE_RETENTION_DAYS', 365)
        cutoff = now - timedelta(days=retention_days)

        with storage_guard("purging certificates"):
            removed = Certificate.query.filter(Certificate.expiry_date < cutoff).delete(
                synchronize_session=False)
            db.session.commit()

        log_info(f"Purged {removed} certificates that expired before {isoformat(cutoff)}")
        return removed
