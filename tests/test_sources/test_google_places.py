"""
Unit tests for the Google Places review source.

Note: These tests use a mocked requests session; no network calls are made.
"""

import pytest
import requests
from unittest.mock import Mock
from src.models.review import ReviewSourceTag
from src.sources.google_places import GooglePlacesSource


def make_response(status=200, payload=None, text=""):
    response = Mock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.text = text
    response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def source(session):
    return GooglePlacesSource(api_key="test-key", place_id="ChIJtest", session=session)


PAYLOAD = {
    "reviews": [
        {
            "rating": 4,
            "text": {"text": "Brilliant with our spaniel"},
            "authorAttribution": {"displayName": "Jo"},
            "publishTime": "2024-05-01T10:00:00.123456789Z"
        },
        {
            "originalText": {"text": "Sehr gut"},
            "publishTime": "2024-04-01T10:00:00Z"
        }
    ]
}


def test_fetch_maps_places_payload(source, session):
    session.get.return_value = make_response(payload=PAYLOAD)

    reviews = source.fetch()

    assert len(reviews) == 2
    first, second = reviews
    assert first.source == ReviewSourceTag.GOOGLE
    assert first.author == "Jo"
    assert first.rating == 4
    assert first.text == "Brilliant with our spaniel"
    assert first.date == "2024-05-01T10:00:00.123456789Z"
    assert first.url == "https://www.google.com/maps/place/?q=place_id:ChIJtest"
    assert first.id.startswith("google_0_")

    assert second.author == "Anonymous"
    assert second.rating == 5
    assert second.text == "Sehr gut"


def test_fetch_sends_api_key_and_field_mask(source, session):
    session.get.return_value = make_response(payload={"reviews": []})

    source.fetch()

    args, kwargs = session.get.call_args
    assert args[0] == "https://places.googleapis.com/v1/places/ChIJtest"
    assert kwargs["headers"]["X-Goog-Api-Key"] == "test-key"
    assert "reviews.publishTime" in kwargs["headers"]["X-Goog-FieldMask"]
    assert kwargs["timeout"] == source.timeout


@pytest.mark.parametrize("api_key", ["", "your_google_places_api_key_here"])
def test_fetch_without_key_returns_nothing(session, api_key):
    source = GooglePlacesSource(api_key=api_key, session=session)

    assert source.fetch() == []
    session.get.assert_not_called()


def test_fetch_http_error_returns_nothing(source, session):
    session.get.return_value = make_response(status=403, text="PERMISSION_DENIED")
    assert source.fetch() == []


def test_fetch_transport_error_returns_nothing(source, session):
    session.get.side_effect = requests.ConnectionError("boom")
    assert source.fetch() == []


def test_fetch_invalid_json_returns_nothing(source, session):
    response = make_response()
    response.json.side_effect = ValueError("not json")
    session.get.return_value = response
    assert source.fetch() == []


@pytest.mark.parametrize("payload", [{}, {"reviews": "nope"}, [], None])
def test_fetch_missing_reviews_array_returns_nothing(source, session, payload):
    session.get.return_value = make_response(payload=payload)
    assert source.fetch() == []


def test_diagnose_reports_working_api(source, session):
    session.get.return_value = make_response(payload=PAYLOAD)

    result = source.diagnose()

    assert result["apiConfigured"] is True
    assert result["apiWorking"] is True
    assert result["count"] == 2


def test_diagnose_reports_api_error(source, session):
    session.get.return_value = make_response(status=400, text="bad request")

    result = source.diagnose()

    assert result["apiWorking"] is False
    assert "400" in result["message"]


def test_diagnose_without_key(session):
    result = GooglePlacesSource(api_key="", session=session).diagnose()
    assert result["apiConfigured"] is False


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
