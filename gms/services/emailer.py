"""Email service with SMTP delivery, dry-run capture and template support."""

from __future__ import annotations

import smtplib
import threading
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from flask import current_app, render_template

from gms.services import settings

if TYPE_CHECKING:
    from gms.models import User

WELCOME_SUBJECT = "Welcome to Gym Zadx - Admin Account Created"
PASSWORD_RESET_SUBJECT = "Your Password Has Been Reset - Gym Management System"
OWNER_RESET_SUBJECT = "OWNER Password Reset - Gym Management System"


class EmailerError(Exception):
    """Raised when SMTP delivery fails."""
    pass


class EmailService:
    """Send mail over SMTP, or capture it to files in dry-run mode.

    Connection settings come from the app config; values stored under the
    ``email.*`` system settings override them.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        cfg = config if config is not None else current_app.config
        self.enabled = bool(cfg.get('SMTP_ENABLED'))
        self.dry_run = bool(cfg.get('EMAIL_DRY_RUN', True))
        self.dry_run_path = Path(cfg.get('EMAIL_DRY_RUN_PATH') or 'logs/emails')
        self.smtp_host = cfg.get('SMTP_HOST')
        self.smtp_port = int(cfg.get('SMTP_PORT') or 587)
        self.smtp_username = cfg.get('SMTP_USERNAME')
        self.smtp_password = cfg.get('SMTP_PASSWORD')
        self.smtp_use_tls = bool(cfg.get('SMTP_USE_TLS', True))
        self.smtp_timeout = int(cfg.get('SMTP_TIMEOUT') or 10)
        self.from_email = cfg.get('MAIL_FROM') or self.smtp_username
        self.from_name = cfg.get('MAIL_FROM_NAME')

    @classmethod
    def from_app(cls) -> "EmailService":
        """Build a service from the app config overlaid with stored settings."""
        service = cls()
        service.enabled = settings.get_bool('email.enabled', service.enabled)
        service.dry_run = settings.get_bool('email.dry_run', service.dry_run)
        service.smtp_host = settings.get('email.smtp_host', service.smtp_host)
        service.smtp_port = settings.get_int('email.smtp_port', service.smtp_port)
        service.smtp_username = settings.get('email.smtp_username', service.smtp_username)
        service.smtp_password = settings.get('email.smtp_password', service.smtp_password)
        service.smtp_use_tls = settings.get_bool('email.smtp_tls', service.smtp_use_tls)
        service.from_email = settings.get('email.sender_address', service.from_email)
        return service

    @property
    def is_configured(self) -> bool:
        return self.enabled and all([self.smtp_host, self.smtp_username, self.smtp_password])

    def send(self, to: str, subject: str, body: str, is_html: bool = False) -> bool:
        """Deliver one message; returns False when e-mail is switched off or nothing could be delivered or saved."""
        if not to:
            current_app.logger.warning(f"Email '{subject}' not sent: no recipient")
            return False

        if not self.enabled and not self.dry_run:
            current_app.logger.warning(f"Email '{subject}' to {to} not sent: e-mail is disabled")
            return False

        if self.dry_run or not self.is_configured:
            return self._save_dry_run(to, subject, body)

        try:
            self._send_smtp(to, subject, body, is_html)
        except EmailerError as e:
            current_app.logger.warning(f"Email to {to} failed, saving dry-run copy instead: {e}")
            return self._save_dry_run(to, subject, body)

        current_app.logger.info(f"Email '{subject}' sent to {to}")
        return True

    def _send_smtp(self, to: str, subject: str, body: str, is_html: bool) -> None:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = formataddr((self.from_name, self.from_email)) if self.from_name else self.from_email
        msg['To'] = to
        msg.attach(MIMEText(body, 'html' if is_html else 'plain', 'utf-8'))

        try:
            if self.smtp_port == 465:
                server = smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=self.smtp_timeout)
            else:
                server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.smtp_timeout)
            with server:
                if self.smtp_port != 465 and self.smtp_use_tls:
                    server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailerError(f"SMTP error: {e}") from e

    def _save_dry_run(self, to: str, subject: str, body: str) -> bool:
        now = datetime.now()
        target = self.dry_run_path / f"email_{now.strftime('%Y%m%d_%H%M%S_%f')}.txt"
        try:
            self.dry_run_path.mkdir(parents=True, exist_ok=True)
            target.write_text(
                "=== EMAIL (DRY-RUN MODE) ===\n"
                f"Timestamp: {now.isoformat(timespec='seconds')}\n"
                f"To: {to}\n"
                f"Subject: {subject}\n"
                "---\n"
                f"{body}\n"
                "===========================\n",
                encoding='utf-8',
            )
        except OSError as e:
            current_app.logger.warning(f"Failed to save dry-run email: {e}")
            return False

        current_app.logger.info(f"Dry-run email saved to: {target}")
        return True

    def send_welcome_email(self, user: User | dict[str, Any], password: str) -> bool:
        context = _user_context(user)
        body = render_template('email/welcome.html', password=password, **context)
        return self.send(context['email'], WELCOME_SUBJECT, body, is_html=True)

    def send_password_reset_email(self, to: str, username: str, new_password: str) -> bool:
        body = render_template('email/password_reset.txt', username=username, new_password=new_password)
        return self.send(to, PASSWORD_RESET_SUBJECT, body)

    def send_owner_password_reset_email(self, to: str, username: str, new_password: str) -> bool:
        body = render_template(
            'email/owner_password_reset.txt',
            username=username,
            new_password=new_password,
            timestamp=datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        )
        return self.send(to, OWNER_RESET_SUBJECT, body)


def _user_context(user: User | dict[str, Any]) -> dict[str, Any]:
    if isinstance(user, dict):
        return dict(user)
    return {
        'first_name': user.first_name,
        'last_name': user.last_name,
        'username': user.username,
        'email': user.email,
        'role': user.role.display_name,
    }


def dispatch_in_background(func: Callable[..., Any], *args: Any, **kwargs: Any) -> threading.Thread | None:
    """
    Run an email send off the request path.

    The callable runs inside a fresh app context on a daemon thread, or
    inline when ``EMAIL_ASYNC`` is off. Failures are logged and never
    propagate to the caller.

    Returns:
        The started thread, or None when run inline
    """
    app = current_app._get_current_object()

    def run():
        with app.app_context():
            try:
                if not func(*args, **kwargs):
                    app.logger.warning(f"Background email task {func.__name__} reported failure")
            except Exception as e:
                app.logger.warning(f"Background email task {func.__name__} failed: {e}")

    if not app.config.get('EMAIL_ASYNC', True):
        run()
        return None

    thread = threading.Thread(target=run, name='gms-email', daemon=True)
    thread.start()
    return thread


__all__ = [
    "EmailService",
    "EmailerError",
    "dispatch_in_background",
    "WELCOME_SUBJECT",
    "PASSWORD_RESET_SUBJECT",
    "OWNER_RESET_SUBJECT",
]
