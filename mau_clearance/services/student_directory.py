"""
Student and staff lookups
"""

from typing import Optional
from mau_clearance.models import db, storage_guard, Student, Staff
from mau_clearance.utils.exceptions import NotFoundError


class StudentDirectory:
    """Read-only access to student and staff records"""

    @staticmethod
    def get_student(student_id: int) -> Optional[Student]:
        with storage_guard("loading student"):
            return db.session.get(Student, student_id)

    @staticmethod
    def find_student_by_id(student_id: int) -> Student:
        """
        Get a student by internal id

        Raises:
            NotFoundError: If no such student exists
        """
        student = StudentDirectory.get_student(student_id)
        if student is None:
            raise NotFoundError("Student not found")
        return student

    @staticmethod
    def find_staff_by_id(staff_id: int) -> Staff:
        with storage_guard("loading staff"):
            staff = db.session.get(Staff, staff_id)
        if staff is None:
            raise NotFoundError("Staff member not found")
        return staff
