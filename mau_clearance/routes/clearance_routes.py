"""
Student clearance routes
"""

from flask import Blueprint, request, jsonify
from mau_clearance.services import ClearanceService
from mau_clearance.utils import ClearanceException, ValidationError, log_error, create_response, error_payload

clearance_bp = Blueprint('clearance', __name__)


@clearance_bp.route('/start', methods=['POST'])
def start_clearance():
    """Start the clearance process"""
    try:
        data = request.get_json(silent=True) or {}
        student_id = data.get('student_id')
        if not isinstance(student_id, int):
            raise ValidationError("student_id must be an integer")

        record = ClearanceService.start_clearance(student_id)
        return jsonify(create_response(True, "Clearance started successfully.", record.to_dict())), 201

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Start clearance error", e)
        return jsonify(create_response(False, "Failed to start clearance")), 500


@clearance_bp.route('/<int:student_id>', methods=['GET'])
def get_clearance(student_id):
    """Section statuses, reasons and approval history"""
    try:
        data = ClearanceService.get_clearance(student_id)
        return jsonify(create_response(True, "Clearance retrieved", data))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Get clearance error", e)
        return jsonify(create_response(False, "Failed to get clearance")), 500
