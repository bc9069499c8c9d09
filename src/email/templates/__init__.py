import os

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = os.path.dirname(os.path.abspath(__file__))

env = Environment(loader=FileSystemLoader(TEMPLATES_DIR),
                  autoescape=select_autoescape(enabled_extensions=('html',), default_for_string=False),
                  trim_blocks=True, lstrip_blocks=True)


class EmailTemplate:
    """
        Used to create email templates based on Jinja2 for use in the relay
    """

    def __init__(self, template=None):
        self.template = env.get_template(template)

    def render(self, **kwargs):
        return self.template.render(**kwargs)

    @staticmethod
    async def contact_message(submission_id: str, sender: str | None, name: str | None, email: str | None,
                              subject: str, message: str | None,
                              extra_fields: dict[str, str]) -> tuple[str, str]:
        """renders the plain text and html bodies of a forwarded submission"""
        context = dict(submission_id=submission_id, sender=sender, name=name, email=email,
                       subject=subject, message=message, extra_fields=extra_fields)
        text = EmailTemplate("contact_message.txt").render(**context)
        html = EmailTemplate("contact_message.html").render(**context)
        return text, html
