"""
Clearance certificate model
"""

from mau_clearance.models.database import db
from mau_clearance.utils.helpers import utcnow, isoformat

CERTIFICATE_ACTIVE = 'active'
CERTIFICATE_EXPIRED = 'expired'
CERTIFICATE_REVOKED = 'revoked'
CERTIFICATE_STATUSES = (CERTIFICATE_ACTIVE, CERTIFICATE_EXPIRED, CERTIFICATE_REVOKED)


class Certificate(db.Model):
    """Issued clearance certificate"""
    __tablename__ = 'certificates'

    id = db.Column(db.Integer, primary_key=True)
    certificate_id = db.Column(db.String(40), unique=True, nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False, index=True)
    security_hash = db.Column(db.String(16), nullable=False)
    issue_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    expiry_date = db.Column(db.DateTime, nullable=False, index=True)
    status = db.Column(db.Enum(*CERTIFICATE_STATUSES, name='certificate_status'),
                       nullable=False, default=CERTIFICATE_ACTIVE)
    verification_count = db.Column(db.Integer, nullable=False, default=0)
    last_verified = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    student = db.relationship('Student', backref=db.backref('certificates', lazy=True))

    __table_args__ = (
        db.Index('ix_certificates_code', 'certificate_id', 'security_hash'),
    )

    @property
    def code(self):
        """Public verification code printed on the document"""
        return f"{self.certificate_id}-{self.security_hash}"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'certificate_id': self.certificate_id,
            'student_id': self.student_id,
            'issue_date': isoformat(self.issue_date),
            'expiry_date': isoformat(self.expiry_date),
            'status': self.status,
            'verification_count': self.verification_count,
            'last_verified': isoformat(self.last_verified),
        }
