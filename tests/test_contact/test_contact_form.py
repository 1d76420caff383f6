"""
Unit tests for the contact form and its rate limiter.
"""

import json
import logging
import pytest
from src.contact.contact_form import (
    ContactSubmission,
    MISSING_FIELDS_MESSAGE,
    RATE_LIMITED_MESSAGE,
    SUCCESS_MESSAGE,
    submit_contact,
)
from src.contact.rate_limiter import RateLimiter
from src.utils.storage import InMemoryKeyValueStore, StoreError


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class FailingStore(InMemoryKeyValueStore):
    def put(self, key, value):
        raise StoreError("write refused")


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(kv, clock):
    return RateLimiter(kv, limit=2, window_seconds=60, clock=clock)


def form(**overrides):
    data = {
        "name": "Sam",
        "email": "sam@example.com",
        "phone": "07700 900000",
        "service": "Puppy classes",
        "message": "Do you have space in the next course?"
    }
    data.update(overrides)
    return data


def test_accepted_submission_is_logged_with_timestamp(caplog):
    with caplog.at_level(logging.INFO, logger="src.contact.contact_form"):
        result = submit_contact(form())

    assert result.success is True
    assert result.status == 200
    assert result.to_dict() == {"success": True, "message": SUCCESS_MESSAGE}

    logged = [r.getMessage() for r in caplog.records if "Contact form submission" in r.getMessage()]
    assert len(logged) == 1
    record = json.loads(logged[0].split(": ", 1)[1])
    assert record["name"] == "Sam"
    assert record["service"] == "Puppy classes"
    assert record["timestamp"].endswith("Z")


@pytest.mark.parametrize("field", ["name", "email", "message"])
def test_missing_required_field_is_rejected(field):
    result = submit_contact(form(**{field: ""}))

    assert result.success is False
    assert result.status == 400
    assert result.message == MISSING_FIELDS_MESSAGE


def test_whitespace_and_non_string_fields_count_as_missing():
    assert submit_contact(form(name="   ")).status == 400
    assert submit_contact(form(email=None)).status == 400
    assert submit_contact(form(message=["hi"])).status == 400


def test_optional_fields_may_be_absent():
    data = form()
    del data["phone"]
    del data["service"]

    submission = ContactSubmission.from_dict(data)

    assert submission.phone is None
    assert submission.service is None
    assert submit_contact(data).success is True


def test_non_object_payload_is_an_error():
    result = submit_contact(["not", "a", "form"])
    assert result.success is False
    assert result.status == 500


def test_window_limit_per_client(limiter):
    assert submit_contact(form(), client_id="1.2.3.4", limiter=limiter).success
    assert submit_contact(form(), client_id="1.2.3.4", limiter=limiter).success

    blocked = submit_contact(form(), client_id="1.2.3.4", limiter=limiter)
    assert blocked.status == 429
    assert blocked.message == RATE_LIMITED_MESSAGE

    assert submit_contact(form(), client_id="5.6.7.8", limiter=limiter).success


def test_invalid_submissions_do_not_use_the_allowance(limiter):
    for _ in range(3):
        submit_contact(form(name=""), client_id="c", limiter=limiter)

    assert limiter.remaining("c") == 2


def test_window_expires(limiter, clock):
    limiter.hit("c")
    limiter.hit("c")
    assert limiter.hit("c") is False

    clock.now += 61

    assert limiter.hit("c") is True
    assert limiter.remaining("c") == 1


def test_window_is_stored_in_key_value_store(kv, limiter, clock):
    limiter.hit("c")

    window = json.loads(kv.get("rate_limit_c"))
    assert window == {"count": 1, "expiresAt": clock.now + 60}

    # A second limiter over the same store shares the window
    other = RateLimiter(kv, limit=2, window_seconds=60, clock=clock)
    assert other.remaining("c") == 1


def test_unreadable_window_starts_fresh(kv, limiter):
    kv.put("rate_limit_c", "{broken")
    assert limiter.hit("c") is True
    assert limiter.remaining("c") == 1


def test_purge_expired(kv, limiter, clock):
    limiter.hit("old")
    clock.now += 30
    limiter.hit("new")
    kv.put("rate_limit_junk", "[]")
    kv.put("reviews_data", "{}")

    clock.now += 31
    removed = limiter.purge_expired()

    assert removed == 2
    assert kv.list_keys("rate_limit_") == ["rate_limit_new"]
    assert kv.get("reviews_data") == "{}"


def test_store_failure_reports_error():
    limiter = RateLimiter(FailingStore(), limit=2, window_seconds=60)
    result = submit_contact(form(), client_id="c", limiter=limiter)
    assert result.success is False
    assert result.status == 500


def test_limiter_rejects_bad_configuration(kv):
    with pytest.raises(ValueError):
        RateLimiter(kv, limit=0, window_seconds=60)


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
