import functools
import re

from src.config.config import config_instance, EmailSettings, FormSettings
from src.contact.models import ContactSubmission
from src.email.templates import EmailTemplate
from src.email.transports import MailTransport, OutboundEmail, create_transport
from src.utils.my_logger import init_logger
from src.utils.utils import create_id

email_logger = init_logger("emailer")

_line_breaks = re.compile(r"[\r\n]+")


def _header_safe(value: str | None) -> str | None:
    """collapses line breaks so submitted values cannot add mail headers"""
    if value is None:
        return None
    return _line_breaks.sub(" ", value).strip() or None


class Emailer:
    """
        Emailing Class, turns contact form submissions into a single outbound
        email for the site owner and hands it to the configured mail transport.
        NOTE there is no queue and no retry, a failed send is reported to the caller
    """

    def __init__(self, transport: MailTransport, email_settings: EmailSettings, form_settings: FormSettings,
                 templates: type[EmailTemplate] = EmailTemplate):
        self.transport = transport
        self.email_settings = email_settings
        self.form_settings = form_settings
        self.templates = templates

    async def create_message(self, submission: ContactSubmission, submission_id: str) -> OutboundEmail:
        """Create the message with plain-text and HTML versions."""
        subject = submission.effective_subject(default=self.form_settings.DEFAULT_SUBJECT,
                                               prefix=self.form_settings.SUBJECT_PREFIX)
        text, html = await self.templates.contact_message(submission_id=submission_id,
                                                          sender=submission.sender,
                                                          name=submission.name,
                                                          email=submission.email,
                                                          subject=subject,
                                                          message=submission.message,
                                                          extra_fields=submission.extra_fields)

        return OutboundEmail(sender=self.email_settings.SENDER,
                             recipient=self.email_settings.RECIPIENT,
                             subject=_header_safe(subject) or self.form_settings.DEFAULT_SUBJECT,
                             text=text,
                             html=html,
                             reply_to=_header_safe(submission.reply_address),
                             headers={"X-Submission-Id": submission_id})

    async def send_email(self, message: OutboundEmail) -> None:
        """single delivery attempt, raises MailTransportError on failure"""
        await self.transport.send(message)

    async def forward_submission(self, submission: ContactSubmission) -> str:
        """
            **forward_submission**
                renders the submission and sends it to the site owner
        :param submission:
        :return: the id the submission was tagged with
        """
        submission_id = create_id()
        message = await self.create_message(submission=submission, submission_id=submission_id)
        email_logger.info(f"Forwarding submission {submission_id} via {self.transport.name} "
                          f"to {message.recipient}")
        await self.send_email(message)
        return submission_id


@functools.lru_cache
def get_emailer() -> Emailer:
    """route dependency, one Emailer per process built from the settings"""
    settings = config_instance()
    return Emailer(transport=create_transport(settings.EMAIL_SETTINGS),
                   email_settings=settings.EMAIL_SETTINGS,
                   form_settings=settings.FORM_SETTINGS)
