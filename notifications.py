import smtplib
import requests
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from config import NotificationSettings

logger = logging.getLogger(__name__)


class Notifications:
    def __init__(self, settings: Optional[NotificationSettings] = None):
        settings = settings or NotificationSettings()
        self.slack_webhook_url = settings.slack_webhook_url
        self.email = settings.email
        self.email_enabled = settings.email is not None

        if self.email_enabled:
            logger.debug(
                f"Email Config - Server: {self.email.smtp_server}, Port: {self.email.smtp_port}, "
                f"Use TLS: {self.email.use_tls}, Username: {self.email.username}, "
                f"Recipients: {self.email.recipients}"
            )

    def send_slack_message(self, message: str):
        """
        Send a message to Slack via a webhook URL.
        """
        if not self.slack_webhook_url:
            logger.debug("Slack webhook URL not configured. Skipping Slack notification.")
            return
        try:
            response = requests.post(self.slack_webhook_url, json={"text": message}, timeout=10)
            if response.status_code != 200:
                logger.error(f"Failed to send Slack message. Code: {response.status_code}, Resp: {response.text}")
            else:
                logger.info("Slack message sent successfully.")
        except requests.RequestException as e:
            logger.error(f"Exception while sending Slack message: {e}")

    def send_email(self, subject: str, plain_body: str, html_body: Optional[str] = None):
        """
        Email the configured recipients with both plain text and HTML content.
        """
        if not self.email_enabled:
            logger.debug("Email notifications not configured. Skipping Email notification.")
            return

        email = self.email
        if not all([email.smtp_server, email.username, email.password, email.recipients]):
            logger.error("Email configuration is incomplete. Check config.yaml.")
            return

        msg = MIMEMultipart('alternative')
        msg['From'] = email.sender_email or email.username
        msg['To'] = ", ".join(email.recipients)
        msg['Subject'] = subject
        msg.attach(MIMEText(plain_body, 'plain'))
        if html_body:
            msg.attach(MIMEText(html_body, 'html'))

        try:
            if email.smtp_port == 465:
                server = smtplib.SMTP_SSL(email.smtp_server, email.smtp_port, timeout=10)
            else:
                server = smtplib.SMTP(email.smtp_server, email.smtp_port, timeout=10)
                server.ehlo()
                if email.use_tls:
                    server.starttls()
                    server.ehlo()

            server.login(email.username, email.password)
            server.send_message(msg)
            logger.info(f"Email sent successfully to {email.recipients} with subject '{subject}'.")
            server.quit()
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP Authentication Error: {e}")
        except smtplib.SMTPException as e:
            logger.error(f"SMTP Error: {e}")
        except OSError as e:
            logger.error(f"Could not reach SMTP server {email.smtp_server}: {e}")

    def notify_update_event(self, repository: str, status: str, details: Optional[str] = ""):
        """
        Notify about a repository update (Slack + Email), only for successful or failed updates.
        """
        if status not in ["successful", "failed"]:
            return

        message = (
            f"Repository Update\n"
            f"Repository: {repository}\n"
            f"Status: {status.capitalize()}\n"
            f"Details: {details}"
        )
        self.send_slack_message(message)
        subject = f"Repository Update: {status.capitalize()} on {repository}"
        html_message = f"""
        <html>
          <body>
            <h2>Repository Update - {status.capitalize()}</h2>
            <table border="1" style="border-collapse: collapse;">
              <tr><th>Repository</th><td>{repository}</td></tr>
              <tr><th>Status</th><td>{status.capitalize()}</td></tr>
              <tr><th>Details</th><td>{details}</td></tr>
            </table>
          </body>
        </html>
        """
        self.send_email(subject, message, html_message)
