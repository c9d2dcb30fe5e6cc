#!/usr/bin/env python3
"""
Probe a cache test endpoint and print the cache-relevant response headers.

Run it directly against the server, or through the proxy/cache under test
(--proxy), to see whether repeated requests are answered from a cache:
a repeated ETag / request number means the origin was not contacted.

Examples:
  python scripts/probe_cache.py --url http://localhost:3000/cache-test --repeat 3
  python scripts/probe_cache.py --url http://localhost:3000/cache-test/max-age/60 --revalidate
  python scripts/probe_cache.py --url http://localhost:3000/cache-test --proxy http://localhost:3128
"""
from __future__ import annotations

import argparse
import os
import sys
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests

# Add the project root to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.utils import mb


@dataclass
class ProbeResult:
    status: int
    cache_control: Optional[str]
    etag: Optional[str]
    last_modified: Optional[str]
    size_bytes: int
    elapsed_ms: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status in (200, 304)


def probe_once(
    session: requests.Session,
    url: str,
    *,
    if_none_match: Optional[str] = None,
    timeout: float = 600.0,
    proxies: Optional[Dict[str, str]] = None,
) -> ProbeResult:
    headers = {"If-None-Match": if_none_match} if if_none_match else {}
    t0 = time.perf_counter()
    try:
        r = session.get(url, headers=headers, timeout=timeout, proxies=proxies)
    except requests.RequestException as e:
        return ProbeResult(0, None, None, None, 0, int(1000 * (time.perf_counter() - t0)), error=str(e))
    return ProbeResult(
        status=r.status_code,
        cache_control=r.headers.get("Cache-Control"),
        etag=r.headers.get("ETag"),
        last_modified=r.headers.get("Last-Modified"),
        size_bytes=len(r.content),
        elapsed_ms=int(1000 * (time.perf_counter() - t0)),
    )


def summarize(results: List[ProbeResult]) -> Dict:
    """Aggregate a probe run: failures, distinct ETags, and whether any ETag repeated."""
    etags = [r.etag for r in results if r.etag]
    return {
        "requests": len(results),
        "failures": sum(1 for r in results if not r.ok),
        "distinct_etags": len(set(etags)),
        "repeated_etag": len(etags) != len(set(etags)),
        "total_mb": mb(sum(r.size_bytes for r in results)),
    }


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Probe cache-test endpoints")
    ap.add_argument("--url", default="http://localhost:3000/cache-test")
    ap.add_argument("--repeat", type=int, default=3, help="Number of requests")
    ap.add_argument("--revalidate", action="store_true", help="Send the previous ETag in If-None-Match")
    ap.add_argument("--proxy", default="", help="HTTP proxy (the cache under test)")
    ap.add_argument("--timeout", type=float, default=600.0, help="Per-request timeout (s)")
    args = ap.parse_args(argv)

    proxies = {"http": args.proxy, "https": args.proxy} if args.proxy else None
    session = requests.Session()
    results: List[ProbeResult] = []
    prev_etag: Optional[str] = None

    for i in range(max(1, args.repeat)):
        res = probe_once(
            session,
            args.url,
            if_none_match=prev_etag if args.revalidate else None,
            timeout=args.timeout,
            proxies=proxies,
        )
        results.append(res)
        if res.error:
            print(f"[{i + 1}] error: {res.error}")
        else:
            print(
                f"[{i + 1}] {res.status} cache-control={res.cache_control!r} etag={res.etag!r} "
                f"last-modified={res.last_modified!r} size={mb(res.size_bytes):.2f}MB time={res.elapsed_ms}ms"
            )
        prev_etag = res.etag or prev_etag

    s = summarize(results)
    print(
        f"{s['requests']} requests, {s['failures']} failed, {s['distinct_etags']} distinct ETags, "
        f"{s['total_mb']:.2f}MB total" + (" (ETag repeated: served from a cache)" if s["repeated_etag"] else "")
    )
    return 1 if s["failures"] else 0


if __name__ == "__main__":
    sys.exit(main())
