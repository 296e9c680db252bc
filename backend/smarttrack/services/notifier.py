# Overview: Outbound email delivery behind one Notifier interface.

"""
Notifier and delivery transports.

WHY: Alerts and enquiries must never fail the business operation that
triggered them. Notifier.send() is the isolation boundary: it always returns
a DeliveryResult and logs the outcome; it never raises.

Transports are interchangeable strategies picked once at startup from
MAIL_TRANSPORT:
- log:    write the message to the application log (development default)
- memory: keep messages in an in-process outbox (tests)
- smtp:   hand off to a local SMTP relay, no authentication
- relay:  SMTP to a third-party relay with STARTTLS/SSL and login
- brevo:  Brevo transactional email HTTP API (api-key header)
- resend: Resend transactional email HTTP API (bearer token)

There is no retry: a failed delivery is logged once and dropped.
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Mapping

import httpx
from flask import current_app, render_template


@dataclass(frozen=True)
class Message:
    recipient: str | None
    subject: str
    body: str
    html: str | None = None


@dataclass(frozen=True)
class Sender:
    email: str
    name: str | None = None

    def formatted(self) -> str:
        return formataddr((self.name or "", self.email))


@dataclass(frozen=True)
class DeliveryResult:
    delivered: bool
    reason: str | None = None
    message_id: str | None = None

    @classmethod
    def ok(cls, message_id: str | None = None) -> "DeliveryResult":
        return cls(delivered=True, message_id=message_id)

    @classmethod
    def failed(cls, reason: str) -> "DeliveryResult":
        return cls(delivered=False, reason=reason)


class DeliveryError(Exception):
    """Raised by a transport when the provider rejects or cannot take a message."""


class Transport:
    name = "base"

    def deliver(self, message: Message, sender: Sender) -> str | None:
        """Hand the message to the provider; return its message id if any."""
        raise NotImplementedError


class LogTransport(Transport):
    name = "log"

    def deliver(self, message: Message, sender: Sender) -> str | None:
        current_app.logger.info(
            "Email (log transport) from=%s to=%s subject=%r\n%s",
            sender.email, message.recipient, message.subject, message.body,
        )
        return None


@dataclass
class MemoryTransport(Transport):
    """Collects messages in outbox; fail_with makes every delivery fail."""
    outbox: list = field(default_factory=list)
    fail_with: str | None = None

    name = "memory"

    def deliver(self, message: Message, sender: Sender) -> str | None:
        if self.fail_with:
            raise DeliveryError(self.fail_with)
        self.outbox.append(message)
        return f"memory-{len(self.outbox)}"


def build_email_message(message: Message, sender: Sender) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender.formatted()
    msg["To"] = message.recipient
    msg["Subject"] = message.subject
    msg["Message-ID"] = make_msgid(domain=sender.email.rpartition("@")[2] or None)
    msg.set_content(message.body)
    if message.html:
        msg.add_alternative(message.html, subtype="html")
    return msg


class SmtpTransport(Transport):
    """Plain SMTP hand-off, typically to a relay on localhost."""
    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int = 25,
        *,
        timeout: float = 10,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = False,
        use_ssl: bool = False,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.use_ssl = use_ssl

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def deliver(self, message: Message, sender: Sender) -> str | None:
        msg = build_email_message(message, sender)
        try:
            with self._connect() as smtp:
                if self.use_tls and not self.use_ssl:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery to {self.host}:{self.port} failed: {exc}") from exc
        return msg["Message-ID"]


class RelaySmtpTransport(SmtpTransport):
    """SMTP through a third-party relay; credentials and encryption required."""
    name = "relay"

    def __init__(self, host: str, port: int = 587, *, username: str | None, password: str | None, **kwargs):
        if not username or not password:
            raise ValueError("relay transport requires MAIL_USERNAME and MAIL_PASSWORD")
        if not kwargs.get("use_ssl"):
            kwargs["use_tls"] = True
        super().__init__(host, port, username=username, password=password, **kwargs)


class _HttpApiTransport(Transport):
    default_url = ""

    def __init__(self, api_key: str | None, *, url: str | None = None, timeout: float = 10,
                 client: httpx.Client | None = None):
        if not api_key:
            raise ValueError(f"{self.name} transport requires MAIL_API_KEY")
        self.api_key = api_key
        self.url = url or self.default_url
        self.timeout = timeout
        self.client = client

    def _headers(self) -> dict:
        raise NotImplementedError

    def _payload(self, message: Message, sender: Sender) -> dict:
        raise NotImplementedError

    def _message_id(self, data: dict) -> str | None:
        raise NotImplementedError

    def deliver(self, message: Message, sender: Sender) -> str | None:
        client = self.client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(self.url, json=self._payload(message, sender), headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DeliveryError(
                f"{self.name} API rejected message: HTTP {exc.response.status_code} {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"{self.name} API request failed: {exc}") from exc
        finally:
            if self.client is None:
                client.close()

        try:
            data = response.json()
        except ValueError:
            return None
        return self._message_id(data) if isinstance(data, dict) else None


class BrevoTransport(_HttpApiTransport):
    name = "brevo"
    default_url = "https://api.brevo.com/v3/smtp/email"

    def _headers(self) -> dict:
        return {"api-key": self.api_key, "accept": "application/json"}

    def _payload(self, message: Message, sender: Sender) -> dict:
        payload = {
            "sender": {"email": sender.email, "name": sender.name},
            "to": [{"email": message.recipient}],
            "subject": message.subject,
            "textContent": message.body,
        }
        if message.html:
            payload["htmlContent"] = message.html
        return payload

    def _message_id(self, data: dict) -> str | None:
        return data.get("messageId")


class ResendTransport(_HttpApiTransport):
    name = "resend"
    default_url = "https://api.resend.com/emails"

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _payload(self, message: Message, sender: Sender) -> dict:
        payload = {
            "from": sender.formatted(),
            "to": [message.recipient],
            "subject": message.subject,
            "text": message.body,
        }
        if message.html:
            payload["html"] = message.html
        return payload

    def _message_id(self, data: dict) -> str | None:
        return data.get("id")


class Notifier:
    """Wraps one transport; send() reports Delivered/Failed and never raises."""

    def __init__(self, transport: Transport, sender: Sender):
        self.transport = transport
        self.sender = sender

    def send(self, message: Message) -> DeliveryResult:
        if not message.recipient:
            current_app.logger.warning(
                "Email %r not sent: no recipient configured (set ADMIN_EMAIL)", message.subject
            )
            return DeliveryResult.failed("no recipient")

        try:
            message_id = self.transport.deliver(message, self.sender)
        except Exception as exc:
            current_app.logger.warning(
                "Email %r to %s via %s failed: %s",
                message.subject, message.recipient, self.transport.name, exc,
            )
            return DeliveryResult.failed(str(exc) or exc.__class__.__name__)

        current_app.logger.info(
            "Email %r sent to %s via %s (message_id=%s)",
            message.subject, message.recipient, self.transport.name, message_id,
        )
        return DeliveryResult.ok(message_id)


TRANSPORT_NAMES = ("log", "memory", "smtp", "relay", "brevo", "resend")


def build_transport(config: Mapping) -> Transport:
    """Select the delivery strategy named by MAIL_TRANSPORT."""
    kind = (config.get("MAIL_TRANSPORT") or "log").strip().lower()
    timeout = float(config.get("MAIL_TIMEOUT", 10))

    if kind == "log":
        return LogTransport()
    if kind == "memory":
        return MemoryTransport()
    if kind == "smtp":
        return SmtpTransport(
            config.get("MAIL_SERVER") or "localhost",
            int(config.get("MAIL_PORT") or 25),
            timeout=timeout,
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            use_tls=bool(config.get("MAIL_USE_TLS")),
            use_ssl=bool(config.get("MAIL_USE_SSL")),
        )
    if kind == "relay":
        return RelaySmtpTransport(
            config.get("MAIL_SERVER") or "localhost",
            int(config.get("MAIL_PORT") or 587),
            timeout=timeout,
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            use_ssl=bool(config.get("MAIL_USE_SSL")),
        )
    if kind == "brevo":
        return BrevoTransport(config.get("MAIL_API_KEY"), url=config.get("MAIL_API_URL"), timeout=timeout)
    if kind == "resend":
        return ResendTransport(config.get("MAIL_API_KEY"), url=config.get("MAIL_API_URL"), timeout=timeout)

    raise ValueError(f"Unknown MAIL_TRANSPORT {kind!r}; expected one of {', '.join(TRANSPORT_NAMES)}")


def init_notifier(app) -> Notifier:
    notifier = Notifier(
        build_transport(app.config),
        Sender(email=app.config["MAIL_SENDER"], name=app.config.get("MAIL_SENDER_NAME")),
    )
    app.extensions["notifier"] = notifier
    return notifier


def get_notifier() -> Notifier:
    return current_app.extensions["notifier"]


def render_email(template: str, **context) -> tuple[str, str]:
    """Render templates/email/<template>.txt and .html; returns (text, html)."""
    text = render_template(f"email/{template}.txt", **context)
    html = render_template(f"email/{template}.html", **context)
    return text, html
