"""
Clearance record model
"""

from typing import Any, Dict, Iterable, List, Optional
from mau_clearance.models.database import db
from mau_clearance.utils.helpers import utcnow, isoformat

# Section keys, in display order
SECTIONS = ('department', 'library', 'dormitory', 'finance', 'registrar', 'cafeteria')

PENDING = 'Pending'
CLEARED = 'Cleared'
REJECTED = 'Rejected'
APPROVED = 'Approved'

SECTION_STATUSES = (PENDING, CLEARED, REJECTED)
OVERALL_STATUSES = (PENDING, APPROVED, REJECTED)
TERMINAL_STATUSES = (APPROVED, REJECTED)

# Approver name used by legacy records for bootstrap rows
LEGACY_SYSTEM_APPROVER = 'System'


def compute_overall_status(statuses: Iterable[str]) -> str:
    """
    Derive the overall status from the section statuses

    Rejected wins over everything, Approved needs every section Cleared.
    """
    statuses = list(statuses)
    if REJECTED in statuses:
        return REJECTED
    if statuses and all(status == CLEARED for status in statuses):
        return APPROVED
    return PENDING


def is_genuine_history_entry(entry: Dict[str, Any]) -> bool:
    """True for entries written by a real approver action"""
    approver = (entry.get('approved_by') or '').strip()
    if not approver:
        return False
    return approver != LEGACY_SYSTEM_APPROVER


def genuine_history(history: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Genuine history entries, newest first"""
    indexed = [(position, dict(entry)) for position, entry in enumerate(history or [])
               if is_genuine_history_entry(entry)]
    # Ties on date fall back to append order
    indexed.sort(key=lambda item: (item[1].get('date') or '', item[0]), reverse=True)
    return [entry for _, entry in indexed]


def _status_column(name: str):
    return db.Column(db.Enum(*SECTION_STATUSES, name=f'{name}_status_enum'),
                     nullable=False, default=PENDING)


class ClearanceRecord(db.Model):
    """One student's clearance progress across the six sections"""
    __tablename__ = 'clearance_records'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False, unique=True)
    department = db.Column(db.String(100), nullable=False)

    department_status = _status_column('department')
    department_reason = db.Column(db.Text, nullable=False, default='')
    library_status = _status_column('library')
    library_reason = db.Column(db.Text, nullable=False, default='')
    dormitory_status = _status_column('dormitory')
    dormitory_reason = db.Column(db.Text, nullable=False, default='')
    finance_status = _status_column('finance')
    finance_reason = db.Column(db.Text, nullable=False, default='')
    registrar_status = _status_column('registrar')
    registrar_reason = db.Column(db.Text, nullable=False, default='')
    cafeteria_status = _status_column('cafeteria')
    cafeteria_reason = db.Column(db.Text, nullable=False, default='')

    overall_status = db.Column(db.Enum(*OVERALL_STATUSES, name='overall_status_enum'),
                               nullable=False, default=PENDING)
    approval_history = db.Column(db.JSON, nullable=False, default=list)

    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    student = db.relationship('Student', backref=db.backref('clearance_record', uselist=False))

    __mapper_args__ = {'version_id_col': version}

    @classmethod
    def start_for(cls, student) -> 'ClearanceRecord':
        """Fresh record with every section Pending and an empty history"""
        record = cls(student_id=student.id, department=student.department,
                     overall_status=PENDING, approval_history=[])
        for section in SECTIONS:
            setattr(record, f'{section}_status', PENDING)
            setattr(record, f'{section}_reason', '')
        return record

    def section_status(self, section: str) -> str:
        return getattr(self, f'{section}_status') or PENDING

    def section_reason(self, section: str) -> str:
        return getattr(self, f'{section}_reason') or ''

    def section_statuses(self) -> Dict[str, str]:
        return {section: self.section_status(section) for section in SECTIONS}

    def section_reasons(self) -> Dict[str, str]:
        return {section: self.section_reason(section) for section in SECTIONS}

    def recompute_overall_status(self) -> str:
        self.overall_status = compute_overall_status(self.section_statuses().values())
        return self.overall_status

    def apply_section_update(self, section: str, status: str, approver: str,
                             reason: Optional[str] = None, when=None) -> str:
        """
        Write one section decision, append it to the history and
        recompute the overall status.

        Returns:
            The recomputed overall status
        """
        stored_reason = (reason or '').strip() if status == REJECTED else ''
        setattr(self, f'{section}_status', status)
        setattr(self, f'{section}_reason', stored_reason)

        entry = {
            'section': section,
            'approved_by': approver,
            'status': status,
            'reason': stored_reason,
            'date': isoformat(when or utcnow()),
        }
        # Reassign so the JSON column is flagged dirty
        self.approval_history = list(self.approval_history or []) + [entry]
        return self.recompute_overall_status()

    def to_dict(self, include_history: bool = True) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            'id': self.id,
            'student_id': self.student_id,
            'department': self.department,
            'sections': self.section_statuses(),
            'reasons': self.section_reasons(),
            'overall_status': self.overall_status,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_history:
            data['approval_history'] = genuine_history(self.approval_history)
        return data
