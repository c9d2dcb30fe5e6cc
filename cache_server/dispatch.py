from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Callable, Dict, Mapping, Optional, Tuple

from common.logging_setup import get_logger
from common.types import CacheDirectives, RequestDescriptor, ResponseDescriptor
from common.utils import http_date, iso_ms, mb, utcnow
from cache_server.counter import RequestCounter
from cache_server.generator import GenerationError, ImageGenerator


log = get_logger("cache_server.dispatch")

DEFAULT_MAX_AGE = 31536000  # one year

NO_CACHE = CacheDirectives(
    cache_control="no-cache, no-store, must-revalidate",
    pragma="no-cache",
    expires="0",
)

ENDPOINTS: Dict[str, str] = {
    "/cache-test": "Default cache test (one-year max-age)",
    "/cache-test/no-cache": "Caching disabled",
    "/cache-test/max-age/:seconds": "Custom max-age",
    "/status": "Server status",
}

USAGE: Dict[str, str] = {
    "Default": "GET /cache-test",
    "Disable caching": "GET /cache-test/no-cache",
    "Custom cache": "GET /cache-test/max-age/3600 (one hour)",
    "Query parameters": "GET /cache-test?maxAge=86400&cacheControl=public,max-age=86400",
}

_DIGITS = re.compile(r"[0-9]{1,10}")
_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_QUOTED = r'"(?:[^"\\\x00-\x1f\x7f]|\\[^\x00-\x1f\x7f])*"'
_DIRECTIVE = rf"{_TOKEN}(?:=(?:{_TOKEN}|{_QUOTED}))?"
_CACHE_CONTROL = re.compile(rf"[ \t]*{_DIRECTIVE}(?:[ \t]*,[ \t]*{_DIRECTIVE})*[ \t]*")
_MAX_CACHE_CONTROL_LEN = 1024

_MAX_AGE_ROUTE = re.compile(r"^/cache-test/max-age/([^/]+)$")

ALLOW = "GET, HEAD"


class ParameterError(ValueError):
    """A request parameter cannot be used as a cache directive."""

    def __init__(self, param: str, detail: str):
        super().__init__(f"{param}: {detail}")
        self.param = param
        self.detail = detail


def parse_seconds(value: str, param: str) -> int:
    """Non-negative delta-seconds (ASCII digits only)."""
    if not _DIGITS.fullmatch(value or ""):
        raise ParameterError(param, f"expected a non-negative integer, got {value!r}")
    return int(value)


def validate_cache_control(value: str) -> str:
    """Return the header value unchanged if it is a well-formed directive list."""
    if not value or len(value) > _MAX_CACHE_CONTROL_LEN:
        raise ParameterError("cacheControl", "must be 1..%d characters" % _MAX_CACHE_CONTROL_LEN)
    if not _CACHE_CONTROL.fullmatch(value):
        raise ParameterError("cacheControl", f"not a valid Cache-Control directive list: {value!r}")
    return value.strip()


def _json(status: int, payload: Dict, headers: Optional[Dict[str, str]] = None) -> ResponseDescriptor:
    return ResponseDescriptor(
        status=status,
        headers=dict(headers or {}),
        body=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        media_type="application/json",
    )


def _head(rsp: ResponseDescriptor) -> ResponseDescriptor:
    """GET status and headers with the body dropped; Content-Length still reports the GET body."""
    headers = dict(rsp.headers)
    headers["Content-Length"] = str(len(rsp.body))
    return ResponseDescriptor(status=rsp.status, headers=headers, body=b"", media_type=rsp.media_type)


class Dispatcher:
    """
    Maps a RequestDescriptor to a ResponseDescriptor.

    Image routes take the next counter value as the seed, attach the route's
    cache directives and return the generated PNG. The only shared state is
    the injected counter.
    """

    def __init__(
        self,
        generator: ImageGenerator,
        counter: RequestCounter,
        *,
        default_max_age: int = DEFAULT_MAX_AGE,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.generator = generator
        self.counter = counter
        self.default_max_age = int(default_max_age)
        self.clock = clock
        self._exact_routes: Dict[str, Callable[..., ResponseDescriptor]] = {
            "/": self._index,
            "/status": self._status,
            "/cache-test": self._cache_test,
            "/cache-test/no-cache": self._no_cache,
        }

    # -------- public API --------

    def dispatch(self, req: RequestDescriptor) -> ResponseDescriptor:
        path = req.path.rstrip("/") or "/"
        route = self._match(path)
        if route is None:
            return _json(404, {"error": "not_found", "path": req.path})
        handler, args = route
        if req.method not in ("GET", "HEAD"):
            return _json(405, {"error": "method_not_allowed", "method": req.method}, {"Allow": ALLOW})
        try:
            rsp = handler(req.params, *args)
        except ParameterError as e:
            log.info("Rejected parameter", extra={"extra": {"path": req.path, "param": e.param, "detail": e.detail}})
            rsp = _json(400, {"error": "invalid_parameter", "param": e.param, "detail": e.detail})
        if req.method == "HEAD":
            return _head(rsp)
        return rsp

    # -------- routes --------

    def _match(self, path: str) -> Optional[Tuple[Callable[..., ResponseDescriptor], tuple]]:
        if path in self._exact_routes:
            return self._exact_routes[path], ()
        m = _MAX_AGE_ROUTE.match(path)
        if m:
            return self._max_age, (m.group(1),)
        return None

    def _cache_test(self, params: Mapping[str, str]) -> ResponseDescriptor:
        max_age = self.default_max_age
        if params.get("maxAge"):
            max_age = parse_seconds(params["maxAge"], "maxAge")
        if params.get("cacheControl"):
            cache_control = validate_cache_control(params["cacheControl"])
        else:
            cache_control = f"public, max-age={max_age}"

        seed = self.counter.next()
        now = self.clock()
        directives = CacheDirectives(
            cache_control=cache_control,
            etag=f'"cache-test-{seed}"',
            last_modified=http_date(now),
        )
        return self._image(seed, now, directives, route="cache-test")

    def _no_cache(self, params: Mapping[str, str]) -> ResponseDescriptor:
        seed = self.counter.next()
        return self._image(seed, self.clock(), NO_CACHE, route="no-cache")

    def _max_age(self, params: Mapping[str, str], raw_seconds: str) -> ResponseDescriptor:
        seconds = parse_seconds(raw_seconds, "seconds")
        seed = self.counter.next()
        directives = CacheDirectives(cache_control=f"public, max-age={seconds}")
        return self._image(seed, self.clock(), directives, route="max-age")

    def _status(self, params: Mapping[str, str]) -> ResponseDescriptor:
        return _json(
            200,
            {
                "status": "running",
                "totalRequests": self.counter.value,
                "serverTime": iso_ms(self.clock()),
                "endpoints": ENDPOINTS,
                "usage": USAGE,
            },
        )

    def _index(self, params: Mapping[str, str]) -> ResponseDescriptor:
        html = f"""<!doctype html>
<html>
<head><meta charset="utf-8"><title>Browser Cache Capacity Test Server</title></head>
<body>
<h1>Browser Cache Capacity Test Server</h1>
<p>Total requests: {self.counter.value}</p>
<h2>Available endpoints:</h2>
<ul>
  <li><a href="/cache-test">/cache-test</a> - default cache test (one-year cache)</li>
  <li><a href="/cache-test/no-cache">/cache-test/no-cache</a> - caching disabled</li>
  <li><a href="/cache-test/max-age/3600">/cache-test/max-age/3600</a> - one-hour cache</li>
  <li><a href="/status">/status</a> - server status</li>
</ul>
<h2>Query parameters:</h2>
<ul>
  <li>maxAge: cache lifetime in seconds</li>
  <li>cacheControl: full Cache-Control header value</li>
</ul>
<p>Example: <a href="/cache-test?maxAge=86400">/cache-test?maxAge=86400</a> (one-day cache)</p>
</body>
</html>
"""
        return ResponseDescriptor(status=200, body=html.encode("utf-8"), media_type="text/html; charset=utf-8")

    # -------- internals --------

    def _image(self, seed: int, now: datetime, directives: CacheDirectives, *, route: str) -> ResponseDescriptor:
        try:
            png = self.generator.generate(seed, iso_ms(now))
        except GenerationError as e:
            log.exception("Image generation failed", extra={"extra": {"request": seed, "route": route}})
            return _json(500, {"error": "generation_failed", "detail": str(e)})

        log.info(
            "Served cache test image",
            extra={
                "extra": {
                    "request": seed,
                    "route": route,
                    "cache_control": directives.cache_control,
                    "size_mb": mb(len(png)),
                }
            },
        )
        return ResponseDescriptor(status=200, headers=directives.as_headers(), body=png, media_type="image/png")
