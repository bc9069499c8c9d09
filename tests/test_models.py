from src.contact.models import ContactSubmission


def test_from_fields_maps_content_fields():
    submission = ContactSubmission.from_fields({
        "from": "jane@example.org",
        "subject": "Hello",
        "message": "Hi there",
    })

    assert submission.sender == "jane@example.org"
    assert submission.subject == "Hello"
    assert submission.message == "Hi there"
    assert submission.extra_fields == {}


def test_from_fields_strips_and_drops_blank_values():
    submission = ContactSubmission.from_fields({"name": "  Jane  ", "email": "   ", "message": None})

    assert submission.name == "Jane"
    assert submission.email is None
    assert submission.message is None


def test_from_fields_routes_control_honeypot_and_extra_fields():
    submission = ContactSubmission.from_fields({
        "message": "hi",
        "_subject": "Enquiry",
        "_next": "/thanks",
        "_gotcha": "spam",
        "_unknown": "dropped",
        "phone": "555-0100",
        "company": "ACME",
    }, honeypot_fields=["_gotcha"])

    assert submission.subject_override == "Enquiry"
    assert submission.next_url == "/thanks"
    assert list(submission.extra_fields) == ["phone", "company"]
    assert "_gotcha" not in submission.extra_fields
    assert "_unknown" not in submission.extra_fields


def test_honeypot_named_like_a_regular_field_is_discarded():
    submission = ContactSubmission.from_fields({"website": "http://spam", "message": "hi"},
                                               honeypot_fields=["website"])

    assert submission.extra_fields == {}


def test_values_are_truncated_not_rejected():
    submission = ContactSubmission.from_fields({"message": "x" * 50}, max_field_length=10)

    assert submission.message == "x" * 10


def test_reply_address_precedence():
    assert ContactSubmission.from_fields({"email": "e@x.org"}).reply_address == "e@x.org"
    assert ContactSubmission.from_fields({"email": "e@x.org", "from": "f@x.org"}).reply_address == "f@x.org"
    assert ContactSubmission.from_fields({
        "email": "e@x.org", "from": "f@x.org", "_replyto": "r@x.org"}).reply_address == "r@x.org"
    assert ContactSubmission.from_fields({}).reply_address is None


def test_effective_subject():
    assert ContactSubmission.from_fields({}).effective_subject(default="Default") == "Default"
    assert ContactSubmission.from_fields({"subject": "Hi"}).effective_subject(default="Default") == "Hi"
    assert ContactSubmission.from_fields({"subject": "Hi", "_subject": "Override"}).effective_subject(
        default="Default") == "Override"
    assert ContactSubmission.from_fields({"subject": "Hi"}).effective_subject(
        default="Default", prefix="[site]") == "[site] Hi"


def test_is_empty():
    assert ContactSubmission.from_fields({"_next": "/thanks"}).is_empty
    assert not ContactSubmission.from_fields({"company": "ACME"}).is_empty
