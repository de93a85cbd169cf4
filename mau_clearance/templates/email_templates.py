from html import escape


def get_status_email_template(full_name: str, status: str, institution: str) -> str:
    """
    HTML body for the clearance status change email.
    Table layout so it renders in Gmail, Outlook and Yahoo alike.
    """
    full_name = escape(full_name or "")
    institution = escape(institution or "")

    if status == 'Approved':
        headline = f"Congratulations {full_name}!"
        colour = "#16a34a"
        body = "You can now download your clearance certificate from your dashboard."
    else:
        headline = f"Hello {full_name},"
        colour = "#dc2626"
        body = "Please log in to your account to see which sections need attention."

    return f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Clearance {status}</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, Helvetica, sans-serif; background-color: #f4f6fa;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: #f4f6fa;">
        <tr>
            <td align="center" style="padding: 20px 0;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%; background-color: #ffffff; border-radius: 12px; overflow: hidden;">
                    <tr>
                        <td align="center" style="padding: 24px 20px; background-color: #1e3a8a; color: #ffffff; font-size: 20px; font-weight: 600;">
                            {institution}
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 30px 40px;">
                            <h1 style="margin: 0 0 20px 0; font-size: 22px; color: #2c3e50; text-align: center;">{headline}</h1>
                            <p style="margin: 0 0 20px 0; font-size: 16px; color: #555555; text-align: center;">
                                Your clearance request has been <b style="color: {colour};">{status.upper()}</b>.
                            </p>
                            <p style="margin: 0; font-size: 14px; color: #555555; text-align: center;">{body}</p>
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding: 20px 40px; background-color: #f8f9fa; border-top: 1px solid #e9ecef; font-size: 12px; color: #6c757d;">
                            This is an automated message from the University Clearance System, please do not reply.
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>
"""


def get_status_email_subject(status: str) -> str:
    if status == 'Approved':
        return "Clearance Approved"
    return "Clearance Rejected"
