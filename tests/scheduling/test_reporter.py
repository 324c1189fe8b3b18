"""Tests for spine_schedule.scheduling.reporter: outcome log lines."""

import re

import pytest
from structlog.testing import capture_logs

from spine_schedule.core.errors import InvalidRunnerError
from spine_schedule.scheduling.models import Schedule
from spine_schedule.scheduling.reporter import OutcomeReporter, describe_error, serialize_data

TIMESTAMP = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}\+00:00"


@pytest.fixture
def reporter():
    return OutcomeReporter()


@pytest.fixture
def schedule():
    return Schedule(index=2, interval="every minute", runs="reports.refresh", data={"region": "eu"})


class TestSerializeData:
    def test_none_and_empty(self):
        assert serialize_data(None) is None
        assert serialize_data({}) is None

    def test_json(self):
        assert serialize_data({"b": 1, "a": [1, 2]}) == '{"a": [1, 2], "b": 1}'

    def test_unserializable_values_are_stringified(self):
        assert serialize_data({"when": object}) == '{"when": "<class \'object\'>"}'

    def test_circular_falls_back_to_repr(self):
        data: dict = {}
        data["self"] = data
        assert serialize_data(data) == repr(data)


class TestDescribeError:
    def test_exception(self):
        assert describe_error(ValueError("bad")) == "ValueError: bad"

    def test_plain_value(self):
        assert describe_error({"code": 3}) == "{'code': 3}"


class TestReportSuccess:
    def test_logs_info_with_message(self, reporter, schedule):
        with capture_logs() as logs:
            outcome = reporter.report_success(schedule)

        assert outcome.succeeded is True
        assert outcome.error is None

        (entry,) = logs
        assert entry["event"] == "schedule_completed"
        assert entry["log_level"] == "info"
        assert entry["runs"] == "reports.refresh"
        assert entry["index"] == 2
        assert entry["data"] == '{"region": "eu"}'
        assert re.fullmatch(
            TIMESTAMP + r": Schedule for 'reports.refresh' \{\"region\": \"eu\"\} "
            r"has completed successfully\.",
            entry["message"],
        )

    def test_no_data(self, reporter):
        schedule = Schedule(index=0, interval="every minute", runs="jobs.ping")
        with capture_logs() as logs:
            reporter.report_success(schedule)

        assert "data" not in logs[0]
        assert logs[0]["message"].endswith(": Schedule for 'jobs.ping' has completed successfully.")

    def test_callable_runner_name(self, reporter):
        def ping(schedule):
            return None

        schedule = Schedule(index=0, interval="every minute", runs=ping)
        with capture_logs() as logs:
            reporter.report_success(schedule)

        assert logs[0]["runs"].endswith("test_callable_runner_name.<locals>.ping")


class TestReportFailure:
    def test_exception(self, reporter, schedule):
        error = RuntimeError("boom")
        with capture_logs() as logs:
            outcome = reporter.report_failure(schedule, error)

        assert outcome.succeeded is False
        assert outcome.error is error

        (entry,) = logs
        assert entry["event"] == "schedule_failed"
        assert entry["log_level"] == "error"
        assert entry["error"] == "RuntimeError: boom"
        assert entry["category"] == "JOB"
        assert entry["exc_info"] is error
        assert entry["message"].endswith("has failed to complete.")

    def test_plain_error_value(self, reporter, schedule):
        with capture_logs() as logs:
            outcome = reporter.report_failure(schedule, "disk full")

        assert outcome.error == "disk full"
        assert logs[0]["error"] == "'disk full'"
        assert "exc_info" not in logs[0]


class TestReportInvalid:
    def test_logs_error_with_schedule(self, reporter, schedule):
        error = InvalidRunnerError("No job registered for 'reports.refresh'")
        with capture_logs() as logs:
            outcome = reporter.report_invalid(schedule, error)

        assert outcome.succeeded is False
        (entry,) = logs
        assert entry["event"] == "schedule_invalid"
        assert entry["log_level"] == "error"
        assert "expected a function or a registered dot-notated job name" in entry["message"]
        assert "'index': 2" in entry["message"]
        assert entry["error"].startswith("InvalidRunnerError")


class TestInjectedLogger:
    def test_uses_given_logger(self, schedule):
        calls = []

        class Recorder:
            def info(self, event, **kw):
                calls.append((event, kw))

        OutcomeReporter(log=Recorder()).report_success(schedule)
        assert calls[0][0] == "schedule_completed"
