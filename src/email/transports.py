import json
from abc import ABC, abstractmethod
from email.errors import MessageError
from email.message import EmailMessage

import aiosmtplib
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Header, Mail, ReplyTo

from src.config.config import EmailSettings
from src.utils.my_logger import init_logger

transport_logger = init_logger("mail-transport")


class OutboundEmail(BaseModel):
    sender: str
    recipient: str
    subject: str
    text: str
    html: str | None = None
    reply_to: str | None = None
    headers: dict[str, str] = {}


class MailTransportError(Exception):
    """raised by a MailTransport whenever a message could not be handed over"""

    def __init__(self, message: str, status_code: int | None = None, details: object = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict[str, object]:
        return {
            'type': self.__class__.__name__,
            'message': self.message,
            'status_code': self.status_code,
            'details': self.details}


class MailTransport(ABC):
    """
        Hands a single OutboundEmail over to a mail service,
        one attempt per call, failures raise MailTransportError
    """
    name: str = "transport"

    @abstractmethod
    async def send(self, message: OutboundEmail) -> None:
        ...


def _decode_body(body: bytes | str | None) -> object:
    if not body:
        return None
    if isinstance(body, bytes):
        body = body.decode('utf-8', errors='replace')
    try:
        return json.loads(body)
    except ValueError:
        return body


class SendGridTransport(MailTransport):
    name = "sendgrid"

    def __init__(self, api_key: str, client: SendGridAPIClient | None = None):
        self.server = client or SendGridAPIClient(api_key)

    @staticmethod
    def create_mail(message: OutboundEmail) -> Mail:
        """Create the message with plain-text and HTML versions."""
        mail = Mail(
            from_email=message.sender,
            to_emails=message.recipient,
            subject=message.subject,
            plain_text_content=message.text,
            html_content=message.html)
        if message.reply_to:
            mail.reply_to = ReplyTo(message.reply_to)
        for key, value in message.headers.items():
            mail.add_header(Header(key, value))
        return mail

    async def send(self, message: OutboundEmail) -> None:
        try:
            mail = self.create_mail(message)
        except ValueError as e:
            raise MailTransportError(message=f"Unable to build the message: {e}") from e

        try:
            response = await run_in_threadpool(self.server.send, mail)
        except HTTPError as e:
            raise MailTransportError(message=f"SendGrid refused the message: {e.reason}",
                                     status_code=e.status_code,
                                     details=_decode_body(e.body)) from e
        except OSError as e:
            raise MailTransportError(message=f"Unable to reach SendGrid: {e}") from e

        if response.status_code not in [200, 201, 202]:
            raise MailTransportError(message="SendGrid did not accept the message",
                                     status_code=response.status_code,
                                     details=_decode_body(response.body))
        transport_logger.info(f"SendGrid accepted message for {message.recipient} : {response.status_code}")


class SMTPTransport(MailTransport):
    name = "smtp"

    def __init__(self, hostname: str, port: int, username: str | None = None, password: str | None = None,
                 use_tls: bool = False, start_tls: bool = True, timeout: float = 30):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        # implicit TLS and STARTTLS are mutually exclusive
        self.start_tls = start_tls and not use_tls
        self.timeout = timeout

    @staticmethod
    def create_mail(message: OutboundEmail) -> EmailMessage:
        mail = EmailMessage()
        mail['From'] = message.sender
        mail['To'] = message.recipient
        mail['Subject'] = message.subject
        if message.reply_to:
            try:
                mail['Reply-To'] = message.reply_to
            except (IndexError, ValueError, MessageError) as e:
                # submitted addresses are free text, an unparsable one is dropped
                transport_logger.warning(f"Dropping unparsable Reply-To {message.reply_to!r} : {e!r}")
                del mail['Reply-To']
        for key, value in message.headers.items():
            mail[key] = value
        mail.set_content(message.text)
        if message.html:
            mail.add_alternative(message.html, subtype='html')
        return mail

    async def send(self, message: OutboundEmail) -> None:
        try:
            mail = self.create_mail(message)
        except (IndexError, ValueError, MessageError) as e:
            raise MailTransportError(message=f"Unable to build the message: {e!r}") from e

        try:
            errors, response = await aiosmtplib.send(
                mail,
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                use_tls=self.use_tls,
                start_tls=self.start_tls,
                timeout=self.timeout)
        except aiosmtplib.SMTPResponseException as e:
            raise MailTransportError(message=f"SMTP server refused the message: {e.message}",
                                     status_code=e.code) from e
        except aiosmtplib.SMTPException as e:
            raise MailTransportError(message=f"SMTP error: {e}") from e
        except OSError as e:
            raise MailTransportError(message=f"Unable to reach SMTP server {self.hostname}:{self.port}: {e}") from e

        if errors:
            raise MailTransportError(message="SMTP server refused some recipients",
                                     details={address: str(error) for address, error in errors.items()})
        transport_logger.info(f"SMTP server accepted message for {message.recipient} : {response}")


def create_transport(email_settings: EmailSettings) -> MailTransport:
    """
        **create_transport**
            selects the mail transport named by EMAIL_SETTINGS.TRANSPORT
    :param email_settings:
    :return:
    """
    transport = email_settings.TRANSPORT.casefold()
    if transport == SendGridTransport.name:
        return SendGridTransport(api_key=email_settings.SENDGRID_API_KEY)
    if transport == SMTPTransport.name:
        return SMTPTransport(hostname=email_settings.SMTP_SERVER,
                             port=email_settings.SMTP_PORT,
                             username=email_settings.SMTP_USERNAME,
                             password=email_settings.SMTP_PASSWORD,
                             use_tls=email_settings.SMTP_USE_TLS,
                             start_tls=email_settings.SMTP_START_TLS,
                             timeout=email_settings.SMTP_TIMEOUT)
    raise ValueError(f"Unknown mail transport: {email_settings.TRANSPORT}")
