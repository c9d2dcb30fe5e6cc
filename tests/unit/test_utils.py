"""
Unit tests for timestamp helpers
"""

import os
import sys
from datetime import datetime, timedelta, timezone

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.utils import http_date, iso_ms, mb


def test_iso_ms_is_utc_with_z():
    dt = datetime(2026, 10, 19, 12, 55, 0, 123456, tzinfo=timezone(timedelta(hours=2)))
    assert iso_ms(dt) == "2026-10-19T10:55:00.123Z"


def test_http_date_is_imf_fixdate():
    assert http_date(datetime(2026, 10, 19, 10, 55, tzinfo=timezone.utc)) == "Mon, 19 Oct 2026 10:55:00 GMT"


def test_http_date_treats_naive_as_utc():
    assert http_date(datetime(2026, 1, 1)) == "Thu, 01 Jan 2026 00:00:00 GMT"


def test_mb():
    assert mb(0) == 0.0
    assert mb(100 * 1024 * 1024) == 100.0
