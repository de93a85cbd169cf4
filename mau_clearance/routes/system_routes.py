"""
Clearance window routes
"""

from flask import Blueprint, request, jsonify
from mau_clearance.services import WindowSettingsService, is_system_open
from mau_clearance.services.window_service import describe_window
from mau_clearance.utils import ClearanceException, log_error, create_response, error_payload, utcnow
from mau_clearance.utils.validators import parse_datetime, parse_bool

system_bp = Blueprint('system', __name__)


@system_bp.route('/system/status', methods=['GET'])
def get_system_status():
    """Public clearance window status"""
    try:
        now = utcnow()
        settings = WindowSettingsService.get_settings(now)
        status = is_system_open(settings, now)
        return jsonify(create_response(True, status.reason, describe_window(settings, status)))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("System status error", e)
        return jsonify(create_response(False, "Failed to get system status")), 500


@system_bp.route('/admin/clearance-settings', methods=['GET'])
def get_clearance_settings():
    """Current window settings with the evaluated status"""
    try:
        now = utcnow()
        settings = WindowSettingsService.get_settings(now)
        status = is_system_open(settings, now)
        data = settings.to_dict()
        data['current_status'] = describe_window(settings, status)
        return jsonify(create_response(True, "Clearance settings retrieved", data))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Get clearance settings error", e)
        return jsonify(create_response(False, "Failed to fetch clearance settings")), 500


@system_bp.route('/admin/clearance-settings', methods=['POST'])
def update_clearance_settings():
    """Replace the scheduled clearance window"""
    try:
        data = request.get_json(silent=True) or {}
        settings = WindowSettingsService.update_schedule(
            parse_datetime(data.get('start_date'), 'Start date'),
            parse_datetime(data.get('end_date'), 'End date'),
            is_active=parse_bool(data.get('is_active')),
            updated_by=data.get('updated_by'),
        )
        return jsonify(create_response(True, "Clearance settings updated successfully", settings.to_dict()))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Update clearance settings error", e)
        return jsonify(create_response(False, "Failed to update clearance settings")), 500


@system_bp.route('/admin/emergency-toggle', methods=['POST'])
def emergency_toggle():
    """Manually open or emergency close the system"""
    try:
        data = request.get_json(silent=True) or {}
        action = data.get('action')
        settings = WindowSettingsService.toggle_override(action, updated_by=data.get('updated_by'))
        message = f"System {'manually opened' if action == 'open' else 'emergency closed'} successfully"
        return jsonify(create_response(True, message, settings.to_dict()))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Emergency toggle error", e)
        return jsonify(create_response(False, "Failed to toggle system status")), 500
