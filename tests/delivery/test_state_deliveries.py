"""Tests for stdout, file and HTTP state hooks."""

import io
import json
import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from pomo_app.config.defaults import FileHookParams, HttpHookParams, StdoutHookParams
from pomo_app.delivery.base import (
    BaseStateDelivery,
    DeliveryResult,
    DeliveryStatus,
    StateDeliveryError,
)
from pomo_app.delivery.file_delivery import FileStateDelivery
from pomo_app.delivery.http_delivery import HttpStateDelivery
from pomo_app.delivery.stdout_delivery import StdoutStateDelivery
from pomo_app.state.models import SessionState, StateEvent

TS = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


def make_event(state=SessionState.RUNNING, count=0):
    return StateEvent(task_id=3, state=state, count=count, n_pomodoros=2, timestamp=TS,
                      previous_state=SessionState.CREATED)


class ExplodingDelivery(BaseStateDelivery):
    def deliver(self, event):
        raise RuntimeError("kaboom")

    def health_check(self):
        return False


class OddCountFailure(BaseStateDelivery):
    def deliver(self, event):
        if event.count % 2:
            return DeliveryResult(status=DeliveryStatus.FAILED, message="odd")
        return DeliveryResult(status=DeliveryStatus.SUCCESS)

    def health_check(self):
        return True


class TestBaseStateDelivery:
    """Dispatch bookkeeping."""

    def test_dispatch_converts_exceptions(self):
        hook = ExplodingDelivery("exploding")

        result = hook.dispatch(make_event())

        assert result.status == DeliveryStatus.FAILED
        assert isinstance(result.error, RuntimeError)
        assert "kaboom" in result.message
        assert result.delivery_time_ms is not None

    def test_stats(self):
        hook = StdoutStateDelivery(stream=io.StringIO())
        hook.dispatch(make_event())
        ExplodingDelivery("x").dispatch(make_event())

        assert hook.get_stats() == {
            "name": "stdout",
            "delivery_count": 1,
            "error_count": 0,
            "success_rate": 1.0,
        }

        hook.reset_stats()
        assert hook.get_stats()["delivery_count"] == 0
        assert hook.get_stats()["success_rate"] == 0.0

    def test_stats_under_concurrent_dispatch(self):
        """Counters stay exact when several session threads share one hook."""
        hook = OddCountFailure("shared")

        def dispatch_many():
            for count in range(200):
                hook.dispatch(make_event(count=count))

        threads = [threading.Thread(target=dispatch_many) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        stats = hook.get_stats()
        assert stats["delivery_count"] == 800
        assert stats["error_count"] == 800
        assert stats["success_rate"] == 0.5

    def test_result_ok(self):
        assert DeliveryResult(status=DeliveryStatus.SUCCESS).ok
        assert not DeliveryResult(status=DeliveryStatus.FAILED).ok


class TestStdoutStateDelivery:
    """Printing state changes."""

    def test_pretty_format(self):
        stream = io.StringIO()
        hook = StdoutStateDelivery(stream=stream)

        assert hook.dispatch(make_event(SessionState.BREAKING, count=1)).ok
        assert stream.getvalue() == "[2024-01-01T09:00:00+00:00] BREAKING task=3 (1/2)\n"

    def test_json_format(self):
        stream = io.StringIO()
        hook = StdoutStateDelivery(config=StdoutHookParams(enabled=True, format="json"),
                                   stream=stream)

        hook.dispatch(make_event())

        payload = json.loads(stream.getvalue())
        assert payload["state"] == "RUNNING"
        assert payload["previous_state"] == "CREATED"
        assert payload["task_id"] == 3

    def test_closed_stream_fails(self):
        stream = io.StringIO()
        stream.close()
        hook = StdoutStateDelivery(stream=stream)

        assert hook.dispatch(make_event()).status == DeliveryStatus.FAILED
        assert not hook.health_check()

    def test_health_check(self):
        assert StdoutStateDelivery(stream=io.StringIO()).health_check()


class TestFileStateDelivery:
    """JSONL event log."""

    def test_appends_json_lines(self, tmp_path):
        path = tmp_path / "events" / "log.jsonl"
        hook = FileStateDelivery(config=FileHookParams(enabled=True, output_path=str(path)))

        hook.dispatch(make_event(SessionState.RUNNING))
        hook.dispatch(make_event(SessionState.PAUSED))

        lines = [json.loads(line) for line in path.read_text().splitlines()]
        assert [line["state"] for line in lines] == ["RUNNING", "PAUSED"]
        assert hook.health_check()

    def test_size_limit_without_rotation(self, tmp_path):
        path = tmp_path / "log.jsonl"
        path.write_text("x" * (1024 * 1024 + 10))
        hook = FileStateDelivery(config=FileHookParams(
            enabled=True, output_path=str(path), max_file_size_mb=1,
        ))

        result = hook.dispatch(make_event())

        assert result.status == DeliveryStatus.FAILED
        assert "limit" in result.message

    def test_rotation(self, tmp_path):
        path = tmp_path / "log.jsonl"
        path.write_text("x" * (1024 * 1024 + 10))
        hook = FileStateDelivery(config=FileHookParams(
            enabled=True, output_path=str(path), max_file_size_mb=1, rotation_enabled=True,
        ))

        assert hook.dispatch(make_event()).ok

        assert len(path.read_text().splitlines()) == 1
        assert len(list(tmp_path.glob("log_*.jsonl"))) == 1


class TestHttpStateDelivery:
    """Webhook delivery."""

    URL = "http://hooks.example.com/pomo"

    def make_hook(self):
        return HttpStateDelivery(config=HttpHookParams(enabled=True, url=self.URL))

    def test_invalid_url(self):
        with pytest.raises(StateDeliveryError):
            HttpStateDelivery(config=HttpHookParams(enabled=True, url="not a url"))
        with pytest.raises(StateDeliveryError):
            HttpStateDelivery(config=HttpHookParams(enabled=True))

    @patch("pomo_app.delivery.http_delivery.urlopen")
    def test_successful_post(self, mock_urlopen):
        mock_urlopen.return_value.__enter__.return_value.getcode.return_value = 204

        result = self.make_hook().dispatch(make_event())

        assert result.ok
        request = mock_urlopen.call_args[0][0]
        assert request.get_method() == "POST"
        assert request.full_url == self.URL
        assert json.loads(request.data)["state"] == "RUNNING"

    @patch("pomo_app.delivery.http_delivery.urlopen")
    def test_http_error(self, mock_urlopen):
        mock_urlopen.side_effect = HTTPError(self.URL, 500, "Server Error", hdrs=None, fp=None)

        result = self.make_hook().dispatch(make_event())

        assert result.status == DeliveryStatus.FAILED
        assert "500" in result.message

    @patch("pomo_app.delivery.http_delivery.urlopen")
    def test_network_error(self, mock_urlopen):
        mock_urlopen.side_effect = URLError("connection refused")

        result = self.make_hook().dispatch(make_event())

        assert result.status == DeliveryStatus.FAILED
        assert "Network error" in result.message

    @patch("pomo_app.delivery.http_delivery.urlopen")
    def test_unexpected_status(self, mock_urlopen):
        response = MagicMock()
        response.getcode.return_value = 302
        mock_urlopen.return_value.__enter__.return_value = response

        result = self.make_hook().dispatch(make_event())

        assert result.status == DeliveryStatus.FAILED
        assert result.message == "HTTP 302"
