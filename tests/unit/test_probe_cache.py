"""
Unit tests for the probe client helpers
"""

import os
import sys
from unittest.mock import Mock

import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from scripts.probe_cache import ProbeResult, main, probe_once, summarize


def _response(status=200, headers=None, content=b"x" * 1024):
    r = Mock()
    r.status_code = status
    r.headers = headers or {}
    r.content = content
    return r


class TestProbeOnce:
    """Test cases for probe_once"""

    def test_collects_cache_headers(self):
        session = Mock()
        session.get.return_value = _response(
            headers={"Cache-Control": "public, max-age=60", "ETag": '"cache-test-4"', "Last-Modified": "x"}
        )
        res = probe_once(session, "http://localhost:3000/cache-test")
        assert res.ok
        assert res.cache_control == "public, max-age=60"
        assert res.etag == '"cache-test-4"'
        assert res.size_bytes == 1024

    def test_sends_if_none_match(self):
        session = Mock()
        session.get.return_value = _response(status=304, content=b"")
        res = probe_once(session, "http://h/cache-test", if_none_match='"cache-test-1"')
        assert res.ok
        _, kwargs = session.get.call_args
        assert kwargs["headers"] == {"If-None-Match": '"cache-test-1"'}

    def test_network_error_recorded(self):
        session = Mock()
        session.get.side_effect = requests.ConnectionError("refused")
        res = probe_once(session, "http://h/cache-test")
        assert not res.ok
        assert "refused" in res.error


class TestSummarize:
    """Test cases for summarize"""

    def test_distinct_etags_from_origin(self):
        results = [ProbeResult(200, "public", f'"cache-test-{i}"', None, 1024 * 1024, 5) for i in range(3)]
        s = summarize(results)
        assert s == {"requests": 3, "failures": 0, "distinct_etags": 3, "repeated_etag": False, "total_mb": 3.0}

    def test_repeated_etag_means_cached(self):
        results = [ProbeResult(200, "public", '"cache-test-1"', None, 10, 5) for _ in range(2)]
        assert summarize(results)["repeated_etag"] is True

    def test_failures_counted(self):
        results = [ProbeResult(500, None, None, None, 0, 5), ProbeResult(0, None, None, None, 0, 5, error="x")]
        assert summarize(results)["failures"] == 2


class TestMain:
    """CLI exit status"""

    def test_exit_status_nonzero_on_failure(self, monkeypatch, capsys):
        monkeypatch.setattr(requests.Session, "get", lambda self, *a, **k: _response(status=500))
        assert main(["--url", "http://h/cache-test", "--repeat", "2"]) == 1
        assert "2 requests, 2 failed" in capsys.readouterr().out

    def test_exit_status_zero_on_success(self, monkeypatch, capsys):
        monkeypatch.setattr(
            requests.Session, "get", lambda self, *a, **k: _response(headers={"ETag": '"cache-test-1"'})
        )
        assert main(["--url", "http://h/cache-test", "--repeat", "2", "--revalidate"]) == 0
        assert "ETag repeated" in capsys.readouterr().out
