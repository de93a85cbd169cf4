"""
Staff clearance routes
"""

from flask import Blueprint, request, jsonify
from mau_clearance.services import ClearanceService, StudentDirectory
from mau_clearance.utils import ClearanceException, ValidationError, log_error, create_response, error_payload

staff_bp = Blueprint('staff', __name__)


def _staff_id(data):
    staff_id = data.get('staff_id')
    if staff_id is not None and not isinstance(staff_id, int):
        raise ValidationError("staff_id must be an integer")
    return staff_id


@staff_bp.route('/<int:staff_id>/students', methods=['GET'])
def list_students(staff_id):
    """Clearance records visible to a staff member"""
    try:
        staff = StudentDirectory.find_staff_by_id(staff_id)
        students = ClearanceService.list_clearances(staff)
        return jsonify(create_response(True, "Students retrieved", {'students': students}))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("List staff students error", e)
        return jsonify(create_response(False, "Failed to get students")), 500


@staff_bp.route('/clear/<int:student_id>', methods=['PUT'])
def update_clearance(student_id):
    """Record a section decision for one student"""
    try:
        data = request.get_json(silent=True) or {}
        section, approver = ClearanceService.resolve_actor(
            _staff_id(data), data.get('section'), data.get('approver')
        )
        record = ClearanceService.update_section(
            student_id, section, data.get('status'), approver, data.get('reason')
        )
        return jsonify(create_response(True, "Clearance updated successfully", record.to_dict()))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Update clearance error", e)
        return jsonify(create_response(False, "Failed to update clearance")), 500


@staff_bp.route('/bulk-update', methods=['PUT'])
def bulk_update():
    """Record the same section decision for many students"""
    try:
        data = request.get_json(silent=True) or {}
        section, approver = ClearanceService.resolve_actor(
            _staff_id(data), data.get('section'), data.get('approver')
        )
        result = ClearanceService.bulk_update_section(
            data.get('ids'), section, data.get('status'), approver, data.get('reason')
        )
        message = f"Updated {len(result.updated)} students to {data.get('status')}"
        if result.failed:
            message += f", {len(result.failed)} failed"
        return jsonify(create_response(True, message, result.to_dict()))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Bulk update error", e)
        return jsonify(create_response(False, "Server error during bulk update")), 500
