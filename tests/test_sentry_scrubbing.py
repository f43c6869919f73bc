"""Tests for the Sentry before_send scrubber."""

from app.telemetry.sentry import scrub_sensitive_data


class TestScrubSensitiveData:
    def test_redacts_headers_and_query_tokens(self):
        event = {
            "request": {
                "headers": {
                    "Authorization": "Bearer eyJ...",
                    "X-RapidAPI-Key": "abc",
                    "Accept": "application/json",
                },
                "query_string": "tournamentId=325&token=s3cret",
                "data": {"homeTeamGoals": 2},
            }
        }

        request = scrub_sensitive_data(event, {})["request"]

        assert request["headers"]["Authorization"] == "[REDACTED]"
        assert request["headers"]["X-RapidAPI-Key"] == "[REDACTED]"
        assert request["headers"]["Accept"] == "application/json"
        assert request["query_string"] == "tournamentId=325&token=[REDACTED]"
        assert request["data"] == "[SCRUBBED]"

    def test_event_without_request(self):
        event = scrub_sensitive_data({"message": "boom"}, {})
        assert event["message"] == "boom"
