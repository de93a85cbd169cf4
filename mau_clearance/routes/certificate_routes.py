"""
Certificate routes
"""

from io import BytesIO
from flask import Blueprint, request, jsonify, send_file
from mau_clearance.services import CertificateService
from mau_clearance.utils import ClearanceException, ValidationError, log_error, create_response, error_payload

certificate_bp = Blueprint('certificate', __name__)


def _pdf_response(document: bytes, filename: str, certificate_id: str):
    response = send_file(
        BytesIO(document),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename,
    )
    response.headers['X-Certificate-Id'] = certificate_id
    return response


def _safe_filename_part(value: str) -> str:
    return ''.join(ch if ch.isalnum() or ch in '-_' else '-' for ch in value)


@certificate_bp.route('/generate', methods=['POST'])
def generate_certificate():
    """Issue a certificate and return it as a PDF download"""
    try:
        data = request.get_json(silent=True) or {}
        student_id = data.get('student_id')
        if not isinstance(student_id, int):
            raise ValidationError("student_id must be an integer")

        issued = CertificateService.issue_certificate(student_id)
        student_number = issued.certificate.student.student_number
        return _pdf_response(
            issued.document,
            f"MAU-Clearance-{_safe_filename_part(student_number)}.pdf",
            issued.certificate_id,
        )

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Certificate generation error", e)
        return jsonify(create_response(False, "Failed to generate certificate")), 500


@certificate_bp.route('/<certificate_id>/pdf', methods=['GET'])
def download_certificate(certificate_id):
    """Re-render a previously issued certificate"""
    try:
        certificate, document = CertificateService.render_existing(certificate_id)
        return _pdf_response(document, f"{certificate.certificate_id}.pdf", certificate.certificate_id)

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Certificate download error", e)
        return jsonify(create_response(False, "Failed to download certificate")), 500


@certificate_bp.route('/student/<int:student_id>', methods=['GET'])
def list_certificates(student_id):
    """A student's certificates, newest first"""
    try:
        certificates = CertificateService.list_certificates(student_id)
        data = {'certificates': [certificate.to_dict() for certificate in certificates]}
        return jsonify(create_response(True, "Certificates retrieved", data))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Get certificates error", e)
        return jsonify(create_response(False, "Failed to fetch certificates")), 500


@certificate_bp.route('/verify/<path:code>', methods=['GET'])
def verify_certificate(code):
    """Public certificate verification"""
    try:
        result = CertificateService.verify_certificate(code)
        return jsonify(create_response(result.valid, result.message, result.to_dict()))

    except ClearanceException as e:
        body, status = error_payload(e)
        return jsonify(body), status
    except Exception as e:
        log_error("Verification error", e)
        return jsonify(create_response(False, "Verification error")), 500
