"""
Clearance service: starting clearance and aggregating section decisions
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from mau_clearance.models import db, storage_guard, ClearanceRecord, Staff
from mau_clearance.models.clearance import CLEARED, REJECTED, TERMINAL_STATUSES
from mau_clearance.services.notification_service import NotificationService
from mau_clearance.services.student_directory import StudentDirectory
from mau_clearance.services.window_service import (
    WindowSettingsService, is_system_open, KIND_BEFORE_OPENING, KIND_AFTER_CLOSING
)
from mau_clearance.utils.exceptions import (
    ClearanceException, ClearanceWindowClosedError, ConcurrentUpdateError,
    DuplicateClearanceError, NotFoundError, StorageError, ValidationError
)
from mau_clearance.utils.helpers import utcnow, isoformat, log_error, log_info, log_warning
from mau_clearance.utils.validators import (
    validate_id_list, validate_optional_text, validate_section, validate_status, validate_text
)

# Bulk actions only record final decisions
BULK_STATUSES = (CLEARED, REJECTED)


@dataclass
class BulkUpdateResult:
    updated: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'updated_count': len(self.updated),
            'failed_count': len(self.failed),
            'updated': self.updated,
            'failed': {str(student_id): message for student_id, message in self.failed.items()},
        }


class ClearanceService:
    """Clearance record operations"""

    @staticmethod
    def start_clearance(student_id: int, now: Optional[datetime] = None) -> ClearanceRecord:
        """
        Start the clearance process for a student

        Raises:
            ClearanceWindowClosedError: If the clearance window is closed
            NotFoundError: If the student does not exist
            DuplicateClearanceError: If the student already has a record
        """
        now = now or utcnow()
        settings = WindowSettingsService.get_settings(now)
        window = is_system_open(settings, now)
        if not window.is_open:
            raise ClearanceWindowClosedError(window.reason, {
                'type': window.kind,
                'opens_at': isoformat(settings.start_date) if window.kind == KIND_BEFORE_OPENING else None,
                'closed_at': isoformat(settings.end_date) if window.kind == KIND_AFTER_CLOSING else None,
                'current_settings': {
                    'start_date': isoformat(settings.start_date),
                    'end_date': isoformat(settings.end_date),
                    'is_active': settings.is_active,
                },
            })

        student = StudentDirectory.find_student_by_id(student_id)

        with storage_guard("checking existing clearance"):
            existing = ClearanceRecord.query.filter_by(student_id=student.id).first()
        if existing is not None:
            raise DuplicateClearanceError("Clearance already started.", {'clearance': existing.to_dict()})

        record = ClearanceRecord.start_for(student)
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateClearanceError("Clearance already started.")
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError("Storage failure while starting clearance. Please retry.") from e

        log_info(f"Clearance started for student {student.student_number}")
        return record

    @staticmethod
    def _load_record(student_id: int) -> ClearanceRecord:
        """Fresh read of the record, overwriting anything held in the session"""
        stmt = (select(ClearanceRecord)
                .where(ClearanceRecord.student_id == student_id)
                .execution_options(populate_existing=True))
        with storage_guard("loading clearance"):
            record = db.session.execute(stmt).scalar_one_or_none()
        if record is None:
            raise NotFoundError("No clearance record found. Please start clearance process first.")
        return record

    @staticmethod
    def get_record(student_id: int) -> ClearanceRecord:
        return ClearanceService._load_record(student_id)

    @staticmethod
    def get_clearance(student_id: int) -> Dict[str, Any]:
        """Section statuses, reasons and genuine approval history for a student"""
        record = ClearanceService._load_record(student_id)
        student = record.student
        return {
            'student': student.to_dict() if student else None,
            'clearance': record.to_dict(),
        }

    @staticmethod
    def update_section(student_id: int, section: str, status: str, approver: str,
                       reason: Optional[str] = None, now: Optional[datetime] = None) -> ClearanceRecord:
        """
        Record a section decision and recompute the overall status

        The read, the section write, the history append and the overall
        status all land in one versioned UPDATE. If another writer got
        there first the change is re-applied to a fresh read.

        Raises:
            ValidationError: On unknown section/status or missing approver
            NotFoundError: If the student has no clearance record
            ConcurrentUpdateError: If every attempt lost the race
        """
        section = validate_section(section)
        status = validate_status(status)
        approver = validate_text(approver, "Approver")
        reason = validate_optional_text(reason, "Reason")

        attempts = current_app.config.get('CLEARANCE_WRITE_RETRIES', 5)
        for attempt in range(1, attempts + 1):
            record = ClearanceService._load_record(student_id)
            previous = record.overall_status
            current = record.apply_section_update(section, status, approver, reason, now)
            try:
                db.session.commit()
            except StaleDataError:
                db.session.rollback()
                log_warning(f"Clearance for student {student_id} changed concurrently, "
                            f"retrying {section} update ({attempt}/{attempts})")
                continue
            except SQLAlchemyError as e:
                db.session.rollback()
                raise StorageError("Storage failure while updating clearance. Please retry.") from e

            log_info(f"{section} set to {status} for student {student_id} by {approver} "
                     f"(overall {previous} -> {current})")
            if current != previous and current in TERMINAL_STATUSES:
                ClearanceService._notify(record, current)
            return record

        raise ConcurrentUpdateError("Clearance record is being updated by someone else. Please retry.")

    @staticmethod
    def _notify(record: ClearanceRecord, status: str) -> None:
        try:
            student = record.student
            if student is None:
                log_warning(f"No student for clearance {record.id}, skipping notification")
                return
            NotificationService.send_status_change_notice(student.email, student.full_name, status)
        except Exception as e:
            log_error(f"Notification for clearance {record.id} failed", e)

    @staticmethod
    def bulk_update_section(student_ids: List[int], section: str, status: str, approver: str,
                            reason: Optional[str] = None, now: Optional[datetime] = None) -> BulkUpdateResult:
        """
        Apply one section decision to many students

        Every record goes through update_section on its own; a failure on
        one student is reported and the rest carry on.
        """
        ids = validate_id_list(student_ids)
        section = validate_section(section)
        status = validate_status(status, BULK_STATUSES)
        approver = validate_text(approver, "Approver")
        reason = validate_optional_text(reason, "Reason")

        result = BulkUpdateResult()
        for student_id in dict.fromkeys(ids):
            try:
                ClearanceService.update_section(student_id, section, status, approver, reason, now)
                result.updated.append(student_id)
            except ClearanceException as e:
                db.session.rollback()
                result.failed[student_id] = e.message
                log_warning(f"Bulk {section} update skipped student {student_id}: {e.message}")

        log_info(f"Bulk {section} -> {status} by {approver}: "
                 f"{len(result.updated)} updated, {len(result.failed)} failed")
        return result

    @staticmethod
    def resolve_actor(staff_id: Optional[int], section: Optional[str],
                      approver: Optional[str]) -> Tuple[str, str]:
        """
        Work out which section is being signed off and by whom

        A staff member's section tag decides the section; callers without a
        staff id must name both section and approver.
        """
        if staff_id is None:
            approver = validate_text(approver, "Approver")
            return validate_section(section), approver

        staff = StudentDirectory.find_staff_by_id(staff_id)
        if section and validate_section(section) != staff.section:
            raise ValidationError(f"{staff.full_name} signs off the {staff.section} section, not {section}")
        return staff.section, staff.full_name

    @staticmethod
    def list_clearances(staff: Staff) -> List[Dict[str, Any]]:
        """
        Clearance records visible to a staff member

        Department heads see their own department; every other section
        sees all students.
        """
        with storage_guard("listing clearances"):
            query = ClearanceRecord.query
            if staff.is_department_head and staff.department:
                query = query.filter_by(department=staff.department)
            records = query.order_by(ClearanceRecord.created_at.desc()).all()
            return [
                {
                    'student': record.student.to_dict() if record.student else None,
                    'clearance': record.to_dict(include_history=False),
                }
                for record in records
            ]
