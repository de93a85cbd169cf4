"""
Status change notifications
"""

import threading
from flask import Flask, current_app
from mau_clearance.services.email_service import EmailService
from mau_clearance.utils.helpers import log_error, log_info


class NotificationWorker(threading.Thread):
    """Sends one notice in the background under its own app context"""

    def __init__(self, app: Flask, email: str, name: str, status: str):
        super().__init__(daemon=True)
        self.app = app
        self.email = email
        self.name = name
        self.status = status

    def run(self):
        with self.app.app_context():
            NotificationService.deliver(self.email, self.name, self.status)


class NotificationService:
    """Fire-and-forget delivery of overall status changes"""

    @staticmethod
    def send_status_change_notice(email: str, name: str, new_overall_status: str) -> None:
        """
        Notify a student that their overall clearance status changed

        Never raises. Runs on a background thread unless NOTIFICATIONS_ASYNC is off.
        """
        if not current_app.config.get('NOTIFICATIONS_ENABLED', True):
            return

        try:
            if current_app.config.get('NOTIFICATIONS_ASYNC', True):
                app = current_app._get_current_object()
                NotificationWorker(app, email, name, new_overall_status).start()
            else:
                NotificationService.deliver(email, name, new_overall_status)
        except Exception as e:
            log_error(f"Could not dispatch {new_overall_status} notice to {email}", e)

    @staticmethod
    def deliver(email: str, name: str, status: str) -> bool:
        """Send the email now; failures are logged and reported as False"""
        try:
            EmailService.send_status_email(email, name, status)
            log_info(f"Status email sent to {email} ({status})")
            return True
        except Exception as e:
            log_error(f"Status email to {email} failed", e)
            return False
