"""
User models for the clearance application
"""

from mau_clearance.models.database import db
from mau_clearance.models.clearance import SECTIONS
from mau_clearance.utils.helpers import utcnow, isoformat


class Student(db.Model):
    """Student model"""
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    student_number = db.Column(db.String(30), unique=True, nullable=False)
    full_name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    department = db.Column(db.String(100), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'student_number': self.student_number,
            'full_name': self.full_name,
            'email': self.email,
            'department': self.department,
            'year': self.year,
        }


class Staff(db.Model):
    """Staff model, tagged with the clearance section it signs off"""
    __tablename__ = 'staff'

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    section = db.Column(db.Enum(*SECTIONS, name='staff_section'), nullable=False)
    # Only meaningful for department heads
    department = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    @property
    def is_department_head(self):
        return self.section == 'department'

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'full_name': self.full_name,
            'email': self.email,
            'section': self.section,
            'department': self.department,
            'created_at': isoformat(self.created_at),
        }
