from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional


@dataclass(slots=True)
class RequestDescriptor:
    """
    Framework-independent view of an incoming HTTP request.

    Attributes:
        method: upper-case HTTP method (GET, POST, ...).
        path: URL path without query string, e.g. "/cache-test/max-age/60".
        params: query parameters; one value per name.
    """
    method: str
    path: str
    params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        if not self.path.startswith("/"):
            self.path = "/" + self.path


@dataclass(slots=True)
class ResponseDescriptor:
    """
    Framework-independent HTTP response.

    Attributes:
        status: HTTP status code.
        headers: response headers (Content-Type is carried in `media_type`).
        body: raw body bytes.
        media_type: value for Content-Type.
    """
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    media_type: str = "application/octet-stream"


@dataclass(slots=True)
class CacheDirectives:
    """Cache-related response headers for a single response; unset fields are omitted."""
    cache_control: Optional[str] = None
    etag: Optional[str] = None
    last_modified: Optional[str] = None
    pragma: Optional[str] = None
    expires: Optional[str] = None

    def as_headers(self) -> Dict[str, str]:
        pairs = (
            ("Cache-Control", self.cache_control),
            ("ETag", self.etag),
            ("Last-Modified", self.last_modified),
            ("Pragma", self.pragma),
            ("Expires", self.expires),
        )
        return {k: v for k, v in pairs if v is not None}
