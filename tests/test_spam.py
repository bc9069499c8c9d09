from src.spam import SubmissionGuard


def make_guard(max_payload_size: int = 1024) -> SubmissionGuard:
    return SubmissionGuard(honeypot_fields=["_gotcha", "_honey"], max_payload_size=max_payload_size)


def test_filled_honeypot_is_spam():
    guard = make_guard()

    assert guard.is_spam({"message": "hi", "_gotcha": "gotcha"})
    assert guard.is_spam({"_honey": "x"})


def test_empty_or_missing_honeypot_is_not_spam():
    guard = make_guard()

    assert not guard.is_spam({"message": "hi"})
    assert not guard.is_spam({"message": "hi", "_gotcha": ""})
    assert not guard.is_spam({"message": "hi", "_gotcha": "   "})
    assert not guard.is_spam({"message": "hi", "_gotcha": None})


def test_payload_size_uses_declared_content_length():
    guard = make_guard(max_payload_size=100)

    assert not guard.is_payload_too_large({})
    assert not guard.is_payload_too_large({"content-length": "100"})
    assert guard.is_payload_too_large({"content-length": "101"})
    assert guard.is_payload_too_large({"content-length": "not-a-number"})


def test_body_size_counts_bytes_read():
    guard = make_guard(max_payload_size=100)

    assert not guard.is_body_too_large(0)
    assert not guard.is_body_too_large(100)
    assert guard.is_body_too_large(101)
