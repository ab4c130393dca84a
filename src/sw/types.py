"""
Core types for the offline cache controller.

This module defines the data structures shared by every layer:
- Enums for cache roles, request shape, routing decisions and worker events
- Frozen dataclasses for requests, response snapshots and cache namespaces
- Page <-> worker message types (ControlMessage, Notification)
- Helper functions for ID generation and timestamps
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import urldefrag, urlparse

from uuid6 import uuid7

from sw.exceptions import NetworkError


def generate_id(prefix: str = "") -> str:
    """Generate a time-ordered unique ID using UUID7.

    Args:
        prefix: Optional prefix for the ID (e.g., "client").

    Returns:
        A unique ID string, optionally prefixed.
    """
    uid = str(uuid7())
    return f"{prefix}_{uid}" if prefix else uid


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class CacheRole(str, Enum):
    """Role of a cache namespace. Values are the namespace name suffixes."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    IMAGE = "images"


class RequestMode(str, Enum):
    """Fetch request mode as reported by the host."""

    NAVIGATE = "navigate"
    SAME_ORIGIN = "same-origin"
    NO_CORS = "no-cors"
    CORS = "cors"


class RequestDestination(str, Enum):
    """Fetch request destination as reported by the host."""

    EMPTY = ""
    DOCUMENT = "document"
    IMAGE = "image"
    SCRIPT = "script"
    STYLE = "style"
    FONT = "font"


class RouteKind(str, Enum):
    """Outcome of routing a single intercepted request."""

    NETWORK_FIRST = "network_first"
    CACHE_FIRST = "cache_first"
    STALE_WHILE_REVALIDATE = "stale_while_revalidate"
    IMAGE_CACHE_FIRST = "image_cache_first"
    PASS_THROUGH = "pass_through"


class EventKind(str, Enum):
    """Events the host delivers to the worker."""

    INSTALL = "install"
    ACTIVATE = "activate"
    FETCH = "fetch"
    MESSAGE = "message"
    SYNC = "sync"
    PERIODIC_SYNC = "periodicsync"


class WorkerState(str, Enum):
    """Worker lifecycle states (owned by the host runtime)."""

    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class MessageAction(str, Enum):
    """Control commands a page may post to the worker."""

    SKIP_WAITING = "skipWaiting"
    CLEAR_CACHE = "clearCache"


# Background signal tags
RSVP_SYNC_TAG = "rsvp-sync"
UPDATE_CHECK_TAG = "update-check"

UPDATE_AVAILABLE = "UPDATE_AVAILABLE"


def normalize_url(url: str) -> str:
    """Strip the fragment from a URL; caches never key on it."""
    return urldefrag(url)[0]


def origin_of(url: str) -> str:
    """Return scheme://host[:port] for an absolute URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}".lower()


@dataclass(frozen=True)
class Request:
    """An intercepted fetch request.

    Only the fields routing and caching look at are modelled.
    """

    url: str
    method: str = "GET"
    mode: RequestMode = RequestMode.NO_CORS
    destination: RequestDestination = RequestDestination.EMPTY
    headers: tuple[tuple[str, str], ...] = ()
    bypass_cache: bool = False  # host "no-cache" hint, set by the update check

    @classmethod
    def navigate(cls, url: str) -> Request:
        """Create a top-level navigation request."""
        return cls(
            url=url,
            mode=RequestMode.NAVIGATE,
            destination=RequestDestination.DOCUMENT,
        )

    @classmethod
    def image(cls, url: str) -> Request:
        """Create an image subresource request."""
        return cls(url=url, destination=RequestDestination.IMAGE)

    @property
    def path(self) -> str:
        """URL path component."""
        return urlparse(self.url).path

    @property
    def origin(self) -> str:
        """URL origin."""
        return origin_of(self.url)

    @property
    def key(self) -> RequestKey:
        """Cache identity of this request."""
        return RequestKey(method=self.method.upper(), url=normalize_url(self.url))


@dataclass(frozen=True)
class RequestKey:
    """Cache identity: method plus fragment-less URL."""

    method: str
    url: str

    @classmethod
    def of(cls, value: Request | RequestKey | str) -> RequestKey:
        """Normalize a request, key or bare URL into a RequestKey."""
        if isinstance(value, RequestKey):
            return value
        if isinstance(value, Request):
            return value.key
        return cls(method="GET", url=normalize_url(value))


@dataclass(frozen=True)
class Response:
    """Immutable response snapshot captured when it was fetched or cached."""

    url: str
    status: int = 200
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""
    captured_at: datetime = field(default_factory=utc_now, compare=False)

    @property
    def ok(self) -> bool:
        """True when the status is in the 2xx range."""
        return 200 <= self.status <= 299

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def raise_for_status(self) -> Response:
        """Raise NetworkError unless the status is ok.

        Returns:
            self, for chaining.
        """
        if not self.ok:
            raise NetworkError(
                "Non-ok response status",
                context={"url": self.url, "status": self.status},
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Summarize for diagnostics (body reduced to its size)."""
        return {
            "url": self.url,
            "status": self.status,
            "headers": dict(self.headers),
            "size": len(self.body),
            "captured_at": self.captured_at.isoformat(),
        }


@dataclass(frozen=True)
class CacheNamespace:
    """A versioned cache namespace, named `<version>-<role>`."""

    version: str
    role: CacheRole

    @property
    def name(self) -> str:
        """Storage name of the namespace."""
        return f"{self.version}-{self.role.value}"

    @classmethod
    def parse(cls, name: str) -> CacheNamespace | None:
        """Parse a namespace name.

        The version tag may itself contain dashes, so the role is taken
        from the last segment.

        Returns:
            CacheNamespace, or None when the name does not follow the convention.
        """
        version, sep, role = name.rpartition("-")
        if not sep or not version:
            return None
        try:
            return cls(version=version, role=CacheRole(role))
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ControlMessage:
    """Command posted by a page to the worker."""

    action: MessageAction

    @classmethod
    def from_dict(cls, data: Any) -> ControlMessage | None:
        """Parse message data.

        Returns:
            ControlMessage, or None for payloads that carry no known action.
        """
        if not isinstance(data, dict):
            return None
        try:
            return cls(action=MessageAction(data.get("action")))
        except ValueError:
            return None


@dataclass(frozen=True)
class Notification:
    """Message posted by the worker to a page."""

    type: str
    message: str

    @classmethod
    def update_available(cls, message: str) -> Notification:
        """Create an UPDATE_AVAILABLE notification."""
        return cls(type=UPDATE_AVAILABLE, message=message)

    def to_dict(self) -> dict[str, str]:
        """Wire representation."""
        return {"type": self.type, "message": self.message}
