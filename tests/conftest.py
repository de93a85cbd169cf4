import pytest
from mau_clearance import create_app
from mau_clearance.models import db, Student, Staff
from mau_clearance.models.clearance import SECTIONS, CLEARED
from mau_clearance.services import ClearanceService, EmailService, WindowSettingsService


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'clearance.db'}",
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def students(app):
    rows = [
        Student(student_number='MAU/1001/15', full_name='Abebe Kebede', email='abebe@example.edu',
                department='Computer Science', year=4),
        Student(student_number='MAU/1002/15', full_name='Sara Tadesse', email='sara@example.edu',
                department='Computer Science', year=4),
        Student(student_number='MAU/2001/15', full_name='Hana Girma', email='hana@example.edu',
                department='Biology', year=3),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


@pytest.fixture
def student(students):
    return students[0]


@pytest.fixture
def staff(app):
    rows = {
        'librarian': Staff(full_name='Library Officer', email='library@example.edu', section='library'),
        'cs_head': Staff(full_name='CS Head', email='cs.head@example.edu', section='department',
                         department='Computer Science'),
    }
    db.session.add_all(rows.values())
    db.session.commit()
    return rows


@pytest.fixture
def open_window(app):
    WindowSettingsService.toggle_override('open', updated_by='pytest')


@pytest.fixture
def started(students, open_window):
    for row in students:
        ClearanceService.start_clearance(row.id)
    return students


@pytest.fixture
def notices(monkeypatch):
    sent = []

    def fake_send(to_email, full_name, status):
        sent.append((to_email, full_name, status))
        return True

    monkeypatch.setattr(EmailService, 'send_status_email', fake_send)
    return sent


@pytest.fixture
def approve():
    def _approve(student_id):
        for section in SECTIONS:
            ClearanceService.update_section(student_id, section, CLEARED, f"{section} officer")
    return _approve
