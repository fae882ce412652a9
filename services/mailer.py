"""Outbound verification email."""

from __future__ import annotations

import logging
import smtplib
from concurrent.futures import Future, ThreadPoolExecutor
from email.message import EmailMessage

logger = logging.getLogger(__name__)

SUBJECT = "Verification link"


class Mailer:
    """Sends verification links from a background worker.

    ``send`` returns immediately; delivery is retried up to ``max_attempts``
    times and then dropped with an error log. When ``suppress`` is set the
    messages are collected in ``outbox`` instead of going to SMTP.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 25,
        sender: str = "no-reply@localhost",
        *,
        verify_url_template: str = "{base_url}/api/users/verify/{token}",
        base_url: str = "http://localhost:5000",
        use_tls: bool = False,
        username: str | None = None,
        password: str | None = None,
        max_attempts: int = 3,
        suppress: bool = False,
        max_workers: int = 2,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.verify_url_template = verify_url_template
        self.base_url = base_url.rstrip("/")
        self.use_tls = use_tls
        self.username = username
        self.password = password
        self.max_attempts = max(1, max_attempts)
        self.suppress = suppress
        self.outbox: list[EmailMessage] = []
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="mailer"
        )

    @classmethod
    def from_config(cls, config) -> "Mailer":
        return cls(
            host=config["MAIL_SERVER"],
            port=config["MAIL_PORT"],
            sender=config["MAIL_DEFAULT_SENDER"],
            verify_url_template=config["VERIFY_URL_TEMPLATE"],
            base_url=config["PUBLIC_BASE_URL"],
            use_tls=config["MAIL_USE_TLS"],
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            max_attempts=config["MAIL_MAX_ATTEMPTS"],
            suppress=config["MAIL_SUPPRESS_SEND"],
        )

    def verification_url(self, token: str) -> str:
        return self.verify_url_template.format(base_url=self.base_url, token=token)

    def build_message(self, to: str, token: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = SUBJECT
        message.set_content(
            "To verify your account please go to {}".format(
                self.verification_url(token)
            )
        )
        return message

    def send(self, to: str, token: str) -> Future:
        """Queue a verification email for ``to``."""

        message = self.build_message(to, token)
        return self._executor.submit(self._deliver, message)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _deliver(self, message: EmailMessage) -> bool:
        for attempt in range(1, self.max_attempts + 1):
            try:
                self._transport(message)
            except (smtplib.SMTPException, OSError) as error:
                logger.warning(
                    "Email to %s failed (attempt %d/%d): %s",
                    message["To"],
                    attempt,
                    self.max_attempts,
                    error,
                )
                continue
            logger.info("Email sent to %s", message["To"])
            return True
        logger.error(
            "Dropping email to %s after %d attempts", message["To"], self.max_attempts
        )
        return False

    def _transport(self, message: EmailMessage) -> None:
        if self.suppress:
            self.outbox.append(message)
            return
        with smtplib.SMTP(host=self.host, port=self.port, timeout=30) as conn:
            if self.use_tls:
                conn.starttls()
            if self.username:
                conn.login(self.username, self.password or "")
            conn.send_message(message)
