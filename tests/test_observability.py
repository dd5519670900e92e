"""
Tests for structured logging, lifecycle events and settings.
"""
import json
import logging

import pytest
from pydantic import ValidationError

from mockworker import (
    EventNames,
    Handler,
    JSONLogger,
    LifecycleEvents,
    MockSettings,
    ResolutionLogger,
    UnhandledRequestStrategy,
    get_settings,
)
from mockworker.errors import PredicateError, ResolverError


def json_records(caplog, logger_name: str) -> list[dict]:
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == logger_name]


class TestJSONLogger:
    def test_emits_json_with_context(self, caplog):
        log = JSONLogger(name="mockworker.test", extra_context={"worker": "w1"})

        with caplog.at_level(logging.INFO, logger="mockworker.test"):
            log.info("Handler matched", handler="GET /x")

        [record] = json_records(caplog, "mockworker.test")
        assert record["level"] == "info"
        assert record["message"] == "Handler matched"
        assert record["handler"] == "GET /x"
        assert record["worker"] == "w1"
        assert "timestamp" in record

    def test_with_context_merges(self, caplog):
        log = JSONLogger(name="mockworker.test").with_context(a=1).with_context(b=2)

        with caplog.at_level(logging.WARNING, logger="mockworker.test"):
            log.warning("careful")

        [record] = json_records(caplog, "mockworker.test")
        assert record["a"] == 1
        assert record["b"] == 2

    def test_error_attaches_traceback(self, caplog):
        log = JSONLogger(name="mockworker.test")
        try:
            raise ValueError("kaboom")
        except ValueError as exc:
            error = exc

        with caplog.at_level(logging.ERROR, logger="mockworker.test"):
            log.error("failed", exc_info=error)

        assert caplog.records[0].exc_info is not None
        assert "kaboom" in caplog.text

        [record] = json_records(caplog, "mockworker.test")
        assert record["error_type"] == "ValueError"
        assert record["error"] == "kaboom"

    def test_disabled_level_is_not_written(self, caplog):
        log = JSONLogger(name="mockworker.test")

        with caplog.at_level(logging.WARNING, logger="mockworker.test"):
            log.debug("noise", payload=object())
            log.info("Handler matched")

        assert json_records(caplog, "mockworker.test") == []

    def test_with_context_keeps_target_logger(self):
        log = JSONLogger(name="mockworker.test", extra_context={"a": 1})
        child = log.with_context(b=2)

        assert child.target is log.target
        assert child.extra_context == {"a": 1, "b": 2}
        assert log.extra_context == {"a": 1}


class TestResolutionLogger:
    def _handler(self) -> Handler:
        return Handler(lambda r: True, lambda r: "ok", name="catch-all")

    def test_match_logged_at_info(self, caplog):
        log = ResolutionLogger(inner=JSONLogger(name="mockworker.test"))

        with caplog.at_level(logging.INFO, logger="mockworker.test"):
            log.handler_matched(self._handler(), "req-1")

        [record] = json_records(caplog, "mockworker.test")
        assert record["handler"] == "catch-all"
        assert record["request_id"] == "req-1"
        assert record["lifecycle"] == "permanent"

    def test_quiet_suppresses_matches_but_not_failures(self, caplog):
        log = ResolutionLogger(inner=JSONLogger(name="mockworker.test"), quiet=True)
        error = ResolverError("catch-all", "req-1", RuntimeError("boom"))

        with caplog.at_level(logging.DEBUG, logger="mockworker.test"):
            log.handler_matched(self._handler(), "req-1")
            log.resolver_failed(error)

        records = json_records(caplog, "mockworker.test")
        assert [r["message"] for r in records] == ["Resolver raised, treating request as unhandled"]
        assert records[0]["error_type"] == "RuntimeError"

    def test_predicate_failure_record(self, caplog):
        log = ResolutionLogger(inner=JSONLogger(name="mockworker.test"))
        error = PredicateError("broken", "req-2", KeyError("path"))

        with caplog.at_level(logging.ERROR, logger="mockworker.test"):
            log.predicate_failed(error)

        [record] = json_records(caplog, "mockworker.test")
        assert record["handler"] == "broken"
        assert record["error_type"] == "KeyError"


class TestErrors:
    def test_handler_execution_error_message(self):
        error = PredicateError("GET /x", "abc", ValueError("nope"))

        assert str(error) == "[GET /x] predicate failed for request abc: ValueError: nope"
        assert error.stage == "predicate"

    def test_resolver_error_stage(self):
        assert ResolverError("h", "r", RuntimeError()).stage == "resolver"


class TestLifecycleEvents:
    def test_on_and_emit(self):
        events = LifecycleEvents()
        received: list[dict] = []

        events.on(EventNames.REQUEST_START, received.append)
        events.emit(EventNames.REQUEST_START, request_id="r1")

        assert received == [{"request_id": "r1"}]

    def test_once(self):
        events = LifecycleEvents()
        received: list[dict] = []

        events.once(EventNames.REQUEST_END, received.append)
        events.emit(EventNames.REQUEST_END, n=1)
        events.emit(EventNames.REQUEST_END, n=2)

        assert received == [{"n": 1}]

    def test_off(self):
        events = LifecycleEvents()
        received: list[dict] = []

        events.on(EventNames.REQUEST_MATCH, received.append)
        events.off(EventNames.REQUEST_MATCH, received.append)
        events.emit(EventNames.REQUEST_MATCH, n=1)

        assert received == []
        assert events.listeners(EventNames.REQUEST_MATCH) == []

    def test_off_after_once_fired(self):
        events = LifecycleEvents()
        received: list[dict] = []

        events.once(EventNames.REQUEST_MATCH, received.append)
        events.emit(EventNames.REQUEST_MATCH, n=1)
        events.off(EventNames.REQUEST_MATCH, received.append)

        assert received == [{"n": 1}]

    def test_fired_once_listeners_are_released(self):
        events = LifecycleEvents()
        received: list[dict] = []

        for n in range(100):
            events.once(EventNames.REQUEST_END, received.append)
            events.emit(EventNames.REQUEST_END, n=n)

        assert len(received) == 100
        assert events._wrappers == {}
        assert events.listeners(EventNames.REQUEST_END) == []

    def test_pending_once_listener_is_kept_until_fired(self):
        events = LifecycleEvents()
        received: list[dict] = []

        events.once(EventNames.REQUEST_END, received.append)
        events.once(EventNames.REQUEST_END, received.append)
        assert len(events._wrappers[(EventNames.REQUEST_END, received.append)]) == 2

        events.emit(EventNames.REQUEST_END, n=1)

        assert received == [{"n": 1}, {"n": 1}]
        assert events._wrappers == {}

    def test_remove_all_listeners(self):
        events = LifecycleEvents()
        received: list[dict] = []
        events.on(EventNames.REQUEST_START, received.append)
        events.on(EventNames.REQUEST_END, received.append)

        events.remove_all_listeners(EventNames.REQUEST_START)
        events.emit(EventNames.REQUEST_START)
        events.emit(EventNames.REQUEST_END)
        events.remove_all_listeners()
        events.emit(EventNames.REQUEST_END)

        assert received == [{}]

    def test_listener_errors_do_not_stop_other_listeners(self, caplog):
        events = LifecycleEvents()
        received: list[dict] = []

        def broken(payload):
            raise RuntimeError("listener failed")

        events.on(EventNames.REQUEST_START, broken)
        events.on(EventNames.REQUEST_START, received.append)

        with caplog.at_level(logging.ERROR, logger="mockworker.events"):
            events.emit(EventNames.REQUEST_START, n=1)

        assert received == [{"n": 1}]
        assert "listener failed" in caplog.text


class TestSettings:
    def test_defaults(self):
        settings = MockSettings()

        assert settings.on_unhandled_request is UnhandledRequestStrategy.WARN
        assert settings.quiet is False
        assert settings.log_name == "mockworker"

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("MOCKWORKER_ON_UNHANDLED_REQUEST", "ERROR")
        monkeypatch.setenv("MOCKWORKER_QUIET", "true")
        monkeypatch.setenv("MOCKWORKER_LOG_NAME", "mocks")

        settings = get_settings()

        assert settings.on_unhandled_request is UnhandledRequestStrategy.ERROR
        assert settings.quiet is True
        assert settings.log_name == "mocks"

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_invalid_strategy(self):
        with pytest.raises(ValidationError):
            MockSettings(on_unhandled_request="explode")

    def test_settings_are_frozen(self):
        settings = MockSettings()

        with pytest.raises(ValidationError):
            settings.quiet = True
