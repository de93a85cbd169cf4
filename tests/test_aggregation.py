import itertools
from datetime import datetime, timedelta
import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from mau_clearance.models import db, ClearanceRecord
from mau_clearance.models.clearance import (
    SECTIONS, SECTION_STATUSES, PENDING, CLEARED, REJECTED, APPROVED,
    compute_overall_status, genuine_history
)
from mau_clearance.services import ClearanceService, WindowSettingsService
from mau_clearance.templates.email_templates import get_status_email_template
from mau_clearance.utils import (
    ClearanceWindowClosedError, ConcurrentUpdateError, DuplicateClearanceError,
    NotFoundError, StorageError, ValidationError, utcnow
)


def test_overall_status_for_every_combination():
    for statuses in itertools.product(SECTION_STATUSES, repeat=len(SECTIONS)):
        overall = compute_overall_status(statuses)
        if REJECTED in statuses:
            assert overall == REJECTED
        elif all(status == CLEARED for status in statuses):
            assert overall == APPROVED
        else:
            assert overall == PENDING


def test_start_creates_pending_record_with_empty_history(students, open_window):
    record = ClearanceService.start_clearance(students[0].id)
    assert record.overall_status == PENDING
    assert record.department == 'Computer Science'
    assert set(record.section_statuses().values()) == {PENDING}
    assert record.approval_history == []


def test_start_rejects_duplicate(started):
    with pytest.raises(DuplicateClearanceError):
        ClearanceService.start_clearance(started[0].id)


def test_start_unknown_student(open_window):
    with pytest.raises(NotFoundError):
        ClearanceService.start_clearance(999)


def test_emergency_close_blocks_start_inside_scheduled_window(students):
    now = utcnow()
    WindowSettingsService.update_schedule(now - timedelta(days=1), now + timedelta(days=1), is_active=True)
    WindowSettingsService.toggle_override('close')

    with pytest.raises(ClearanceWindowClosedError) as excinfo:
        ClearanceService.start_clearance(students[0].id)
    assert excinfo.value.details['type'] == 'emergency'
    assert ClearanceRecord.query.count() == 0


def test_start_before_window_opens_reports_opening_date(students):
    with pytest.raises(ClearanceWindowClosedError) as excinfo:
        ClearanceService.start_clearance(students[0].id)
    assert excinfo.value.details['type'] == 'before_opening'
    assert excinfo.value.details['opens_at'] is not None


def test_rejection_reason_lifecycle_and_approval_scenario(started, notices):
    student = started[0]

    record = ClearanceService.get_record(student.id)
    assert record.overall_status == PENDING

    record = ClearanceService.update_section(student.id, 'department', REJECTED, 'CS Head',
                                             'missing transcript')
    assert record.overall_status == REJECTED
    assert record.department_reason == 'missing transcript'

    record = ClearanceService.update_section(student.id, 'department', CLEARED, 'CS Head')
    assert record.department_reason == ''
    assert record.overall_status == PENDING

    remaining = [section for section in SECTIONS if section != 'department']
    for index, section in enumerate(remaining):
        record = ClearanceService.update_section(student.id, section, CLEARED, f"{section} officer")
        if index < len(remaining) - 1:
            assert record.overall_status == PENDING
    assert record.overall_status == APPROVED

    assert [status for _, _, status in notices] == [REJECTED, APPROVED]
    assert len(record.approval_history) == 7


def test_rejected_without_reason_stores_empty_reason(started):
    record = ClearanceService.update_section(started[0].id, 'library', REJECTED, 'Librarian')
    assert record.library_reason == ''
    assert record.approval_history[-1]['reason'] == ''


def test_reason_is_dropped_for_non_rejected_status(started):
    record = ClearanceService.update_section(started[0].id, 'finance', CLEARED, 'Bursar', 'ignored')
    assert record.finance_reason == ''


def test_same_value_update_still_records_history(started, notices):
    student_id = started[0].id
    ClearanceService.update_section(student_id, 'library', REJECTED, 'Librarian', 'unreturned book')
    record = ClearanceService.update_section(student_id, 'library', REJECTED, 'Librarian', 'two books')
    assert record.overall_status == REJECTED
    assert record.library_reason == 'two books'
    assert len(record.approval_history) == 2
    # Only the transition into Rejected notifies
    assert len(notices) == 1


def test_history_entry_fields(started):
    record = ClearanceService.update_section(started[0].id, 'cafeteria', REJECTED, 'Cafe Manager', 'meal debt')
    entry = record.approval_history[-1]
    assert entry['section'] == 'cafeteria'
    assert entry['approved_by'] == 'Cafe Manager'
    assert entry['status'] == REJECTED
    assert entry['reason'] == 'meal debt'
    assert entry['date']


@pytest.mark.parametrize('section, status, approver', [
    ('gym', CLEARED, 'Coach'),
    ('library', 'Approved', 'Librarian'),
    ('library', None, 'Librarian'),
    ('library', CLEARED, '  '),
])
def test_update_validation(started, section, status, approver):
    with pytest.raises(ValidationError):
        ClearanceService.update_section(started[0].id, section, status, approver)


def test_update_without_record(students):
    with pytest.raises(NotFoundError):
        ClearanceService.update_section(students[0].id, 'library', CLEARED, 'Librarian')


def test_notification_failure_does_not_fail_update(started, approve):
    # Testing config has no mail credentials, so every send raises internally
    approve(started[0].id)
    record = ClearanceService.get_record(started[0].id)
    assert record.overall_status == APPROVED


def test_concurrent_update_on_other_section_is_not_lost(started, monkeypatch):
    student_id = started[0].id
    original_load = ClearanceService._load_record
    loads = []

    def racing_load(sid):
        record = original_load(sid)
        loads.append(sid)
        if len(loads) == 1:
            # Another writer clears finance between our read and our write
            with db.engine.begin() as conn:
                conn.execute(text(
                    "UPDATE clearance_records SET finance_status = 'Cleared', version = version + 1 "
                    "WHERE student_id = :sid"
                ), {'sid': sid})
        return record

    monkeypatch.setattr(ClearanceService, '_load_record', staticmethod(racing_load))
    ClearanceService.update_section(student_id, 'library', CLEARED, 'Librarian')
    assert len(loads) == 2

    monkeypatch.setattr(ClearanceService, '_load_record', staticmethod(original_load))
    record = ClearanceService.get_record(student_id)
    assert record.library_status == CLEARED
    assert record.finance_status == CLEARED
    assert len(record.approval_history) == 1


def test_concurrent_writes_resolve_to_consistent_overall_status(started, monkeypatch):
    student_id = started[0].id
    for section in ('department', 'library', 'dormitory', 'finance', 'registrar'):
        ClearanceService.update_section(student_id, section, CLEARED, 'Officer')

    original_load = ClearanceService._load_record
    loads = []

    def racing_load(sid):
        record = original_load(sid)
        loads.append(sid)
        if len(loads) == 1:
            with db.engine.begin() as conn:
                conn.execute(text(
                    "UPDATE clearance_records SET registrar_status = 'Rejected', version = version + 1 "
                    "WHERE student_id = :sid"
                ), {'sid': sid})
        return record

    monkeypatch.setattr(ClearanceService, '_load_record', staticmethod(racing_load))
    record = ClearanceService.update_section(student_id, 'cafeteria', CLEARED, 'Cafe Manager')

    # Recomputed from the fresh read, so the registrar rejection wins
    assert record.overall_status == REJECTED


def test_update_gives_up_after_repeated_conflicts(app, started, monkeypatch):
    app.config['CLEARANCE_WRITE_RETRIES'] = 3
    original_load = ClearanceService._load_record
    loads = []

    def always_racing(sid):
        record = original_load(sid)
        loads.append(sid)
        with db.engine.begin() as conn:
            conn.execute(text("UPDATE clearance_records SET version = version + 1 WHERE student_id = :sid"),
                         {'sid': sid})
        return record

    monkeypatch.setattr(ClearanceService, '_load_record', staticmethod(always_racing))
    with pytest.raises(ConcurrentUpdateError) as excinfo:
        ClearanceService.update_section(started[0].id, 'library', CLEARED, 'Librarian')
    assert excinfo.value.retryable
    assert len(loads) == 3


def test_bulk_update_reports_partial_failure(started, students):
    outsider_ids = [started[0].id, started[1].id, 999]
    result = ClearanceService.bulk_update_section(outsider_ids, 'library', CLEARED, 'Librarian')
    assert result.updated == [started[0].id, started[1].id]
    assert list(result.failed) == [999]
    assert ClearanceService.get_record(started[1].id).library_status == CLEARED


def test_bulk_update_rejects_pending_and_empty_lists(started):
    with pytest.raises(ValidationError):
        ClearanceService.bulk_update_section([started[0].id], 'library', PENDING, 'Librarian')
    with pytest.raises(ValidationError):
        ClearanceService.bulk_update_section([], 'library', CLEARED, 'Librarian')


def test_bulk_update_goes_through_recompute(started, notices):
    ids = [row.id for row in started]
    result = ClearanceService.bulk_update_section(ids, 'finance', REJECTED, 'Bursar', 'unpaid fees')
    assert len(result.updated) == 3
    for row in started:
        record = ClearanceService.get_record(row.id)
        assert record.overall_status == REJECTED
        assert record.finance_reason == 'unpaid fees'
    assert len(notices) == 3


def test_get_clearance_hides_legacy_placeholder_rows(started):
    student_id = started[0].id
    record = ClearanceService.get_record(student_id)
    record.approval_history = [
        {'section': section, 'approved_by': 'System', 'status': PENDING, 'reason': '',
         'date': '2025-01-01T00:00:00'}
        for section in SECTIONS
    ]
    db.session.commit()

    ClearanceService.update_section(student_id, 'library', CLEARED, 'Librarian')
    ClearanceService.update_section(student_id, 'finance', REJECTED, 'Bursar', 'fees')

    history = ClearanceService.get_clearance(student_id)['clearance']['approval_history']
    assert [entry['approved_by'] for entry in history] == ['Bursar', 'Librarian']


def test_genuine_history_drops_entries_without_approver():
    history = [
        {'approved_by': '', 'status': CLEARED, 'date': '2026-01-01T00:00:00'},
        {'approved_by': None, 'status': CLEARED, 'date': '2026-01-02T00:00:00'},
        {'approved_by': 'Registrar', 'status': CLEARED, 'date': '2026-01-03T00:00:00'},
    ]
    assert [entry['approved_by'] for entry in genuine_history(history)] == ['Registrar']


def test_resolve_actor_uses_staff_section(staff):
    assert ClearanceService.resolve_actor(staff['librarian'].id, None, None) == ('library', 'Library Officer')
    with pytest.raises(ValidationError):
        ClearanceService.resolve_actor(staff['librarian'].id, 'finance', None)


def test_department_head_sees_only_their_department(started, staff):
    visible = ClearanceService.list_clearances(staff['cs_head'])
    assert {row['student']['department'] for row in visible} == {'Computer Science'}
    assert len(ClearanceService.list_clearances(staff['librarian'])) == 3


@pytest.mark.parametrize('approver, status, reason', [
    (42, CLEARED, None),
    (['Librarian'], CLEARED, None),
    ('Librarian', REJECTED, 5),
    ('Librarian', REJECTED, {'text': 'overdue'}),
])
def test_update_rejects_non_text_approver_and_reason(started, approver, status, reason):
    with pytest.raises(ValidationError):
        ClearanceService.update_section(started[0].id, 'library', status, approver, reason)
    record = ClearanceService.get_record(started[0].id)
    assert record.library_status == PENDING
    assert record.approval_history == []


def test_bulk_and_resolve_actor_reject_non_text_approver(started):
    with pytest.raises(ValidationError):
        ClearanceService.bulk_update_section([started[0].id], 'library', CLEARED, 42)
    with pytest.raises(ValidationError):
        ClearanceService.bulk_update_section([started[0].id], 'library', REJECTED, 'Librarian', 7)
    with pytest.raises(ValidationError):
        ClearanceService.resolve_actor(None, 'library', 42)


def test_history_with_identical_timestamps_is_newest_first(started):
    student_id = started[0].id
    moment = datetime(2026, 5, 10, 12, 0)
    ClearanceService.update_section(student_id, 'library', CLEARED, 'First Officer', now=moment)
    ClearanceService.update_section(student_id, 'finance', CLEARED, 'Second Officer', now=moment)

    history = ClearanceService.get_clearance(student_id)['clearance']['approval_history']
    assert [entry['approved_by'] for entry in history] == ['Second Officer', 'First Officer']


def test_status_email_escapes_names():
    html = get_status_email_template('<b>Abebe</b>', APPROVED, 'Mekdela & Amba')
    assert '&lt;b&gt;Abebe&lt;/b&gt;' in html
    assert '<b>Abebe</b>' not in html
    assert 'Mekdela &amp; Amba' in html


def _failing_commit():
    raise OperationalError("COMMIT", {}, Exception("database is locked"))


def test_storage_failure_on_update_is_retryable_and_rolled_back(started, monkeypatch):
    student_id = started[0].id
    monkeypatch.setattr(db.session, 'commit', _failing_commit)

    with pytest.raises(StorageError) as excinfo:
        ClearanceService.update_section(student_id, 'library', REJECTED, 'Librarian', 'overdue')
    assert excinfo.value.retryable

    monkeypatch.undo()
    record = ClearanceService.get_record(student_id)
    assert record.library_status == PENDING
    assert record.library_reason == ''
    assert record.overall_status == PENDING
    assert record.approval_history == []


def test_storage_failure_on_start_creates_nothing(students, open_window, monkeypatch):
    monkeypatch.setattr(db.session, 'commit', _failing_commit)

    with pytest.raises(StorageError) as excinfo:
        ClearanceService.start_clearance(students[0].id)
    assert excinfo.value.retryable

    monkeypatch.undo()
    assert ClearanceRecord.query.count() == 0
