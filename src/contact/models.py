from typing import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field

# form fields forwarded as the body of the message
CONTENT_FIELDS: tuple[str, ...] = ("from", "name", "email", "subject", "message")
# form fields that steer the relay and are never forwarded
CONTROL_FIELDS: tuple[str, ...] = ("_subject", "_replyto", "_next")


class ContactSubmission(BaseModel):
    """
        A single contact form submission as received from a static site.
        All fields are free text and optional.
    """
    sender: str | None = Field(default=None, alias="from")
    name: str | None = None
    email: str | None = None
    subject: str | None = None
    message: str | None = None
    subject_override: str | None = Field(default=None, alias="_subject")
    reply_to: str | None = Field(default=None, alias="_replyto")
    next_url: str | None = Field(default=None, alias="_next")
    extra_fields: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(title="Contact Submission", populate_by_name=True, extra="forbid")

    @classmethod
    def from_fields(cls, fields: Mapping[str, object], honeypot_fields: Iterable[str] = (),
                    max_field_length: int | None = None) -> "ContactSubmission":
        """
        **from_fields**
            builds a submission from a flat mapping of submitted form fields,
            values are stripped and blank values dropped, honeypot fields are discarded
            and any unknown field ends up in extra_fields in submission order

        :param fields: parsed form or json body
        :param honeypot_fields: names of hidden spam trap fields
        :param max_field_length: values longer than this are truncated
        :return: ContactSubmission
        """
        honeypots = set(honeypot_fields)
        known: dict[str, str] = {}
        extra: dict[str, str] = {}
        for key, raw_value in fields.items():
            if key in honeypots or raw_value is None:
                continue
            value = str(raw_value).strip()
            if not value:
                continue
            if max_field_length is not None:
                value = value[:max_field_length]

            if key in CONTENT_FIELDS or key in CONTROL_FIELDS:
                known[key] = value
            elif not key.startswith("_"):
                extra[key] = value

        return cls(**known, extra_fields=extra)

    @property
    def reply_address(self) -> str | None:
        return self.reply_to or self.sender or self.email

    def effective_subject(self, default: str, prefix: str = "") -> str:
        subject = self.subject_override or self.subject or default
        return f"{prefix.strip()} {subject}".strip() if prefix else subject

    @property
    def is_empty(self) -> bool:
        return not any((self.sender, self.name, self.email, self.subject, self.message, self.extra_fields))
