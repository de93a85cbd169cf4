from datetime import timedelta
from mau_clearance.models import Certificate
from mau_clearance.models.clearance import CLEARED, REJECTED, APPROVED
from mau_clearance.services import ClearanceService
from mau_clearance.utils import utcnow


def test_system_status_defaults_to_before_opening(client):
    response = client.get('/api/system/status')
    assert response.status_code == 200
    body = response.get_json()
    assert body['ok']
    assert body['data']['is_open'] is False
    assert body['data']['type'] == 'before_opening'
    assert body['data']['opens_in']


def test_start_is_refused_while_closed(client, student):
    response = client.post('/api/clearance/start', json={'student_id': student.id})
    assert response.status_code == 403
    body = response.get_json()
    assert not body['ok']
    assert body['data']['type'] == 'before_opening'

    client.post('/api/admin/emergency-toggle', json={'action': 'close'})
    response = client.post('/api/clearance/start', json={'student_id': student.id})
    assert response.status_code == 403
    assert response.get_json()['data']['type'] == 'emergency'


def test_start_and_duplicate(client, student, open_window):
    response = client.post('/api/clearance/start', json={'student_id': student.id})
    assert response.status_code == 201
    assert response.get_json()['data']['overall_status'] == 'Pending'

    response = client.post('/api/clearance/start', json={'student_id': student.id})
    assert response.status_code == 409


def test_start_requires_integer_student_id(client, open_window):
    response = client.post('/api/clearance/start', json={'student_id': 'abc'})
    assert response.status_code == 400


def test_get_clearance(client, started):
    ClearanceService.update_section(started[0].id, 'library', REJECTED, 'Librarian', 'overdue book')

    response = client.get(f'/api/clearance/{started[0].id}')
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['student']['student_number'] == 'MAU/1001/15'
    assert data['clearance']['overall_status'] == REJECTED
    assert data['clearance']['reasons']['library'] == 'overdue book'
    assert data['clearance']['approval_history'][0]['approved_by'] == 'Librarian'

    assert client.get('/api/clearance/999').status_code == 404


def test_staff_clear_with_explicit_approver(client, started):
    response = client.put(f'/api/staff/clear/{started[0].id}', json={
        'section': 'finance', 'status': REJECTED, 'approver': 'Bursar', 'reason': 'unpaid fees',
    })
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['sections']['finance'] == REJECTED
    assert data['reasons']['finance'] == 'unpaid fees'


def test_staff_clear_with_staff_id(client, started, staff):
    response = client.put(f'/api/staff/clear/{started[0].id}', json={
        'staff_id': staff['librarian'].id, 'status': CLEARED,
    })
    assert response.status_code == 200
    history = response.get_json()['data']['approval_history']
    assert history[0]['approved_by'] == 'Library Officer'
    assert history[0]['section'] == 'library'


def test_staff_cannot_act_on_other_section(client, started, staff):
    response = client.put(f'/api/staff/clear/{started[0].id}', json={
        'staff_id': staff['librarian'].id, 'section': 'finance', 'status': CLEARED,
    })
    assert response.status_code == 400


def test_staff_clear_rejects_unknown_status(client, started):
    response = client.put(f'/api/staff/clear/{started[0].id}', json={
        'section': 'library', 'status': 'Approved', 'approver': 'Librarian',
    })
    assert response.status_code == 400
    assert ClearanceService.get_record(started[0].id).library_status == 'Pending'


def test_staff_student_list(client, started, staff):
    response = client.get(f"/api/staff/{staff['cs_head'].id}/students")
    assert response.status_code == 200
    assert len(response.get_json()['data']['students']) == 2

    assert client.get('/api/staff/999/students').status_code == 404


def test_bulk_update(client, started):
    ids = [row.id for row in started] + [999]
    response = client.put('/api/staff/bulk-update', json={
        'ids': ids, 'section': 'dormitory', 'status': CLEARED, 'approver': 'Proctor',
    })
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['updated_count'] == 3
    assert data['failed_count'] == 1
    assert '999' in data['failed']


def test_bulk_update_refuses_pending(client, started):
    response = client.put('/api/staff/bulk-update', json={
        'ids': [started[0].id], 'section': 'dormitory', 'status': 'Pending', 'approver': 'Proctor',
    })
    assert response.status_code == 400


def test_generate_requires_approval(client, started):
    response = client.post('/api/certificates/generate', json={'student_id': started[0].id})
    assert response.status_code == 400
    assert Certificate.query.count() == 0


def test_generate_download_and_verify(client, started, approve):
    student = started[0]
    approve(student.id)
    assert ClearanceService.get_record(student.id).overall_status == APPROVED

    response = client.post('/api/certificates/generate', json={'student_id': student.id})
    assert response.status_code == 200
    assert response.mimetype == 'application/pdf'
    assert response.data.startswith(b'%PDF')
    certificate_id = response.headers['X-Certificate-Id']
    assert 'MAU-Clearance-MAU-1001-15.pdf' in response.headers['Content-Disposition']

    certificate = Certificate.query.filter_by(certificate_id=certificate_id).one()

    response = client.get(f'/api/certificates/verify/{certificate.code}')
    assert response.status_code == 200
    body = response.get_json()
    assert body['ok']
    assert body['data']['valid']
    assert body['data']['certificate']['student']['full_name'] == 'Abebe Kebede'
    assert len(body['data']['certificate']['approval_history']) == 6

    response = client.get(f'/api/certificates/{certificate_id}/pdf')
    assert response.status_code == 200
    assert response.data.startswith(b'%PDF')

    response = client.get(f'/api/certificates/student/{student.id}')
    listed = response.get_json()['data']['certificates']
    assert [row['certificate_id'] for row in listed] == [certificate_id]
    assert listed[0]['verification_count'] == 1


def test_verify_unknown_and_malformed_codes(client, app):
    response = client.get('/api/certificates/verify/MAU-CERT-20260410-ABC123-0A1B2C3D')
    assert response.status_code == 200
    body = response.get_json()
    assert not body['ok']
    assert body['message'] == 'Certificate not found or invalid'

    assert client.get('/api/certificates/verify/not-a-code').status_code == 400


def test_download_unknown_certificate(client, app):
    assert client.get('/api/certificates/MAU-CERT-20260410-NOPE00/pdf').status_code == 404


def test_clearance_settings_roundtrip(client, app):
    now = utcnow()
    response = client.post('/api/admin/clearance-settings', json={
        'start_date': (now - timedelta(days=1)).isoformat(),
        'end_date': (now + timedelta(days=3)).isoformat(),
        'is_active': True,
        'updated_by': 'registrar',
    })
    assert response.status_code == 200

    response = client.get('/api/admin/clearance-settings')
    data = response.get_json()['data']
    assert data['is_active']
    assert data['current_status']['is_open']
    assert data['current_status']['type'] == 'scheduled'
    assert data['current_status']['time_remaining']


def test_clearance_settings_validation(client, app):
    now = utcnow()
    response = client.post('/api/admin/clearance-settings', json={
        'start_date': (now + timedelta(days=3)).isoformat(),
        'end_date': (now + timedelta(days=1)).isoformat(),
    })
    assert response.status_code == 400

    response = client.post('/api/admin/clearance-settings', json={'start_date': 'soon'})
    assert response.status_code == 400


def test_emergency_toggle(client, app):
    response = client.post('/api/admin/emergency-toggle', json={'action': 'open'})
    assert response.status_code == 200
    assert client.get('/api/system/status').get_json()['data']['type'] == 'manual'

    response = client.post('/api/admin/emergency-toggle', json={'action': 'close'})
    assert response.get_json()['data']['emergency_closed']
    assert client.get('/api/system/status').get_json()['data']['is_open'] is False

    assert client.post('/api/admin/emergency-toggle', json={'action': 'pause'}).status_code == 400


def test_staff_clear_rejects_non_text_fields(client, started):
    response = client.put(f'/api/staff/clear/{started[0].id}', json={
        'section': 'library', 'status': CLEARED, 'approver': 42,
    })
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Approver must be a string'

    response = client.put(f'/api/staff/clear/{started[0].id}', json={
        'section': 'library', 'status': REJECTED, 'approver': 'Librarian', 'reason': 5,
    })
    assert response.status_code == 400
    assert ClearanceService.get_record(started[0].id).library_status == 'Pending'


def test_bulk_update_rejects_non_text_approver(client, started):
    response = client.put('/api/staff/bulk-update', json={
        'ids': [started[0].id], 'section': 'library', 'status': CLEARED, 'approver': 42,
    })
    assert response.status_code == 400
