import json
from typing import Iterable
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette import status
from starlette.responses import JSONResponse, RedirectResponse, Response

from src.config import config_instance
from src.config.config import FormSettings
from src.contact.models import ContactSubmission
from src.email.email import Emailer, get_emailer
from src.email.transports import MailTransportError
from src.ratelimit import get_client_ip, rate_limit_by_ip
from src.spam import SubmissionGuard
from src.utils.my_logger import init_logger

contact_router = APIRouter()

contact_logger = init_logger('contact-logger')


def get_submission_guard() -> SubmissionGuard:
    form_settings = config_instance().FORM_SETTINGS
    return SubmissionGuard(honeypot_fields=form_settings.HONEYPOT_FIELDS,
                           max_payload_size=form_settings.MAX_PAYLOAD_SIZE)


def _field_value(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, list):
        return ", ".join(str(item) for item in value if item is not None)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


async def read_limited_body(request: Request, guard: SubmissionGuard) -> bytes:
    """
        reads the request body chunk by chunk, raising 413 as soon as it grows past
        the configured limit whether or not a Content-Length was declared
    :param request:
    :param guard:
    :return:
    """
    too_large = HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                              detail=f"Request body larger than {guard.max_payload_size} bytes")
    if guard.is_payload_too_large(request.headers):
        raise too_large

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if guard.is_body_too_large(len(body)):
            raise too_large
    return bytes(body)


def _buffered_request(request: Request, body: bytes) -> Request:
    """a copy of the request whose body is replayed from memory"""
    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(request.scope, receive)


async def read_submitted_fields(request: Request, body: bytes,
                                honeypot_fields: Iterable[str] = ()) -> dict[str, str | None]:
    """
        parses url-encoded, multipart or json bodies into a flat mapping of field -> value,
        repeated form fields (checkbox groups) are joined with a comma
    :param request:
    :param body: the already read request body
    :param honeypot_fields: json false, 0, null or empty values of these count as blank
    :return:
    """
    content_type = request.headers.get('content-type', '')
    if content_type.startswith('application/json'):
        try:
            payload = json.loads(body)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body is not valid JSON")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="JSON body must be an object")
        honeypots = set(honeypot_fields)
        return {str(key): "" if key in honeypots and not value else _field_value(value)
                for key, value in payload.items()}

    form = await _buffered_request(request, body).form()
    fields: dict[str, list[str]] = {}
    for key, value in form.multi_items():
        # uploaded files are not forwarded
        if isinstance(value, str):
            fields.setdefault(key, []).append(value)
    return {key: _field_value(values) for key, values in fields.items()}


def wants_json(request: Request) -> bool:
    return ('application/json' in request.headers.get('accept', '') or
            request.headers.get('content-type', '').startswith('application/json'))


def is_allowed_redirect(next_url: str, form_settings: FormSettings) -> bool:
    parsed = urlparse(next_url)
    if not parsed.scheme and not parsed.netloc:
        return next_url.startswith('/') and not next_url.startswith('//')
    return parsed.scheme in ('http', 'https') and parsed.hostname in form_settings.ALLOWED_REDIRECT_HOSTS


def success_response(request: Request, submission: ContactSubmission, form_settings: FormSettings) -> Response:
    if submission.next_url and not wants_json(request):
        if is_allowed_redirect(submission.next_url, form_settings):
            return RedirectResponse(url=submission.next_url, status_code=status.HTTP_303_SEE_OTHER)
        contact_logger.warning(f"Ignoring redirect to non allowed location : {submission.next_url}")
    return JSONResponse(content={"success": True}, status_code=status.HTTP_200_OK)


@contact_router.api_route('/contact', methods=['POST'], dependencies=[Depends(rate_limit_by_ip)])
async def submit_contact(request: Request,
                         emailer: Emailer = Depends(get_emailer),
                         guard: SubmissionGuard = Depends(get_submission_guard)):
    """
        **submit_contact**
            receives a contact form post and forwards it as a single email to the site owner

        success -> {"success": true} with status 200
        mail transport failure -> {"success": false, "error": {...}} with status 500
    :param request:
    :param emailer:
    :param guard:
    :return:
    """
    form_settings = config_instance().FORM_SETTINGS
    client_ip = get_client_ip(request)

    body = await read_limited_body(request, guard)
    fields = await read_submitted_fields(request, body, honeypot_fields=form_settings.HONEYPOT_FIELDS)
    submission = ContactSubmission.from_fields(fields=fields,
                                               honeypot_fields=form_settings.HONEYPOT_FIELDS,
                                               max_field_length=form_settings.MAX_FIELD_LENGTH)

    if guard.is_spam(fields):
        # spam bots get the same answer as humans
        contact_logger.warning(f"Dropped spam submission from : {client_ip}")
        return success_response(request, submission, form_settings)

    if submission.is_empty:
        contact_logger.warning(f"Forwarding a submission without content from : {client_ip}")

    try:
        submission_id = await emailer.forward_submission(submission)
    except MailTransportError as e:
        contact_logger.error(f"""
        Mail Transport Error

        Debug Information
            request_url: {request.url}
            client_ip: {client_ip}
            error_detail: {e.message}
            status_code: {e.status_code}
            details: {e.details}
        """)
        return JSONResponse(content={"success": False, "error": e.to_dict()},
                            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    contact_logger.info(f"Submission {submission_id} from {client_ip} forwarded")
    return success_response(request, submission, form_settings)
