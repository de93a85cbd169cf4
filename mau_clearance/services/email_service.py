"""
Email service for sending notifications
"""

import smtplib
import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr
import requests
from flask import current_app
from mau_clearance.templates.email_templates import get_status_email_template, get_status_email_subject
from mau_clearance.utils.exceptions import EmailError


class EmailService:
    """Email service class"""

    @staticmethod
    def send_status_email(to_email: str, full_name: str, status: str) -> bool:
        """
        Send clearance status email

        Args:
            to_email: Recipient email
            full_name: Recipient full name
            status: New overall clearance status (Approved or Rejected)

        Returns:
            True if sent successfully
        """
        subject = get_status_email_subject(status)
        html_content = get_status_email_template(
            full_name, status, current_app.config.get('INSTITUTION_NAME', 'University')
        )
        return EmailService.send_email_html(to_email, subject, html_content)

    @staticmethod
    def send_email_html(to_email: str, subject: str, html_content: str) -> bool:
        """Send HTML email through the configured backend"""
        backend = current_app.config.get('MAIL_BACKEND', 'smtp')
        if backend == 'brevo':
            return EmailService._send_via_brevo(to_email, subject, html_content)
        if backend == 'smtp':
            return EmailService._send_via_smtp(to_email, subject, html_content)
        raise EmailError(f"Unknown mail backend: {backend}")

    @staticmethod
    def _send_via_smtp(to_email: str, subject: str, html_content: str) -> bool:
        """Send HTML email over SMTP"""
        try:
            # Get email configuration
            mail_server = current_app.config.get('MAIL_SERVER', 'smtp.gmail.com')
            mail_port = current_app.config.get('MAIL_PORT', 587)
            mail_username = current_app.config.get('MAIL_USERNAME')
            mail_password = current_app.config.get('MAIL_PASSWORD')
            sender_name = current_app.config.get('MAIL_SENDER_NAME', 'University Clearance System')

            if not all([mail_username, mail_password]):
                raise EmailError("Email configuration not found")

            # Create message
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = formataddr((sender_name, mail_username))
            msg['To'] = to_email

            msg.attach(MIMEText(html_content, 'html'))

            context = ssl.create_default_context()
            with smtplib.SMTP(mail_server, mail_port, timeout=30) as server:
                if current_app.config.get('MAIL_USE_TLS', True):
                    server.starttls(context=context)
                server.login(mail_username, mail_password)
                server.send_message(msg)

            return True

        except EmailError:
            raise
        except Exception as e:
            raise EmailError(f"Failed to send email: {str(e)}")

    @staticmethod
    def _send_via_brevo(to_email: str, subject: str, html_content: str) -> bool:
        """Send HTML email through the Brevo transactional API"""
        api_key = current_app.config.get('BREVO_API_KEY')
        sender_email = current_app.config.get('MAIL_USERNAME')
        if not all([api_key, sender_email]):
            raise EmailError("Brevo configuration not found")

        payload = {
            'sender': {
                'email': sender_email,
                'name': current_app.config.get('MAIL_SENDER_NAME', 'University Clearance System'),
            },
            'to': [{'email': to_email}],
            'subject': subject,
            'htmlContent': html_content,
        }
        try:
            resp = requests.post(
                current_app.config.get('BREVO_API_URL', 'https://api.brevo.com/v3/smtp/email'),
                json=payload,
                headers={'api-key': api_key, 'accept': 'application/json'},
                timeout=30,
            )
        except requests.exceptions.Timeout as e:
            raise EmailError(f"Brevo request timed out: {str(e)}")
        except requests.exceptions.RequestException as e:
            raise EmailError(f"Brevo request failed: {str(e)}")

        if resp.status_code >= 400:
            raise EmailError(f"Brevo rejected the email ({resp.status_code}): {resp.text[:200]}")
        return True
