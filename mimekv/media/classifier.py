"""
Media type classification and Accept negotiation.

Every Content-Type seen on write is classified into exactly one of:

    SPECIFIC   — a well-formed type/subtype that can be stored
    GENERIC    — a wildcard or catch-all type (e.g. */*, application/octet-stream)
    MALFORMED  — missing, empty, or not parseable as type/subtype

Which types count as generic lives in a MediaPolicy, not in the function.
Everything here is pure.

Usage:
    result = classify("image/png")
    if result.is_specific:
        store(key, result.media_type, body)

    is_acceptable("image/png", "image/*, text/plain;q=0.5")  # True
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mimekv.core.config import MediaConfig

OCTET_STREAM = "application/octet-stream"

# RFC 9110 token characters
_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_ESSENCE_RE = re.compile(rf"^({_TOKEN})/({_TOKEN})$")


class MediaClass(str, Enum):
    """Outcome of classifying a Content-Type header."""

    SPECIFIC = "specific"
    GENERIC = "generic"
    MALFORMED = "malformed"


@dataclass(frozen=True, slots=True)
class Classification:
    """Result of classify(). media_type is set only for SPECIFIC."""

    kind: MediaClass
    media_type: str | None = None
    reason: str = ""

    @property
    def is_specific(self) -> bool:
        return self.kind is MediaClass.SPECIFIC

    @property
    def essence(self) -> str | None:
        if self.media_type is None:
            return None
        return essence_of(self.media_type)


@dataclass(frozen=True, slots=True)
class MediaPolicy:
    """
    Policy table for write-time classification.

    generic_types: essences that are too unspecific to store.
    allow_octet_stream: treat application/octet-stream as a deliberate
        binary declaration instead of a catch-all.
    """

    generic_types: frozenset[str] = field(
        default_factory=lambda: frozenset({OCTET_STREAM})
    )
    allow_octet_stream: bool = False

    @classmethod
    def from_config(cls, config: MediaConfig) -> MediaPolicy:
        return cls(
            generic_types=frozenset(t.strip().lower() for t in config.generic_types),
            allow_octet_stream=config.allow_octet_stream,
        )

    def is_generic(self, essence: str) -> bool:
        if essence == OCTET_STREAM and self.allow_octet_stream:
            return False
        return essence in self.generic_types


DEFAULT_POLICY = MediaPolicy()


@dataclass(frozen=True, slots=True)
class MediaRange:
    """One entry of an Accept header, e.g. text/* ;q=0.8."""

    type: str
    subtype: str
    q: float = 1.0

    @property
    def specificity(self) -> int:
        if self.type == "*":
            return 0
        return 1 if self.subtype == "*" else 2

    def matches(self, essence: str) -> bool:
        if self.type == "*":
            return self.subtype == "*"
        stored_type, _, stored_subtype = essence.partition("/")
        if self.type != stored_type:
            return False
        return self.subtype == "*" or self.subtype == stored_subtype


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Parsing
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def essence_of(media_type: str) -> str:
    """'Text/HTML; charset=utf-8' → 'text/html'."""
    return media_type.split(";", 1)[0].strip().lower()


def _split_params(raw: str) -> tuple[str, list[str]]:
    head, *params = raw.split(";")
    return head.strip(), [p.strip() for p in params if p.strip()]


def _params_valid(params: list[str]) -> bool:
    for param in params:
        name, sep, value = param.partition("=")
        if not sep or not re.fullmatch(_TOKEN, name.strip()) or not value.strip():
            return False
    return True


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Public API
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def classify(header: str | None, policy: MediaPolicy = DEFAULT_POLICY) -> Classification:
    """Classify a Content-Type header value."""
    if header is None or not header.strip():
        return Classification(MediaClass.MALFORMED, reason="Content-Type header is missing")

    head, params = _split_params(header)
    match = _ESSENCE_RE.match(head)
    if match is None or not _params_valid(params):
        return Classification(
            MediaClass.MALFORMED,
            reason=f"Content-Type '{header.strip()}' is not a valid type/subtype",
        )

    type_, subtype = match.group(1).lower(), match.group(2).lower()
    essence = f"{type_}/{subtype}"

    if type_ == "*" or subtype == "*":
        return Classification(
            MediaClass.GENERIC,
            reason=f"Wildcard media type '{essence}' cannot be stored",
        )

    if policy.is_generic(essence):
        return Classification(
            MediaClass.GENERIC,
            reason=(
                f"Generic media type '{essence}' cannot be stored; "
                "declare the payload's real media type"
            ),
        )

    media_type = "; ".join([essence, *params])
    return Classification(MediaClass.SPECIFIC, media_type=media_type)


def parse_accept(header: str | None) -> list[MediaRange]:
    """Parse an Accept header. Unparseable entries are dropped."""
    if not header:
        return []

    ranges: list[MediaRange] = []
    for entry in header.split(","):
        head, params = _split_params(entry)
        match = _ESSENCE_RE.match(head)
        if match is None:
            continue
        type_, subtype = match.group(1).lower(), match.group(2).lower()
        if type_ == "*" and subtype != "*":
            continue
        q = 1.0
        for param in params:
            name, _, value = param.partition("=")
            if name.strip().lower() == "q":
                try:
                    q = min(max(float(value.strip()), 0.0), 1.0)
                except ValueError:
                    q = 1.0
        ranges.append(MediaRange(type_, subtype, q))
    return ranges


def is_acceptable(stored_type: str, accept_header: str | None) -> bool:
    """
    Check whether a stored media type satisfies an Accept header.

    An absent or empty header accepts anything, as does a header with no
    parseable ranges. The most specific matching range decides, so
    "text/plain;q=0, */*" rejects text/plain and accepts everything else.
    """
    if accept_header is None or not accept_header.strip():
        return True

    ranges = parse_accept(accept_header)
    if not ranges:
        return True

    essence = essence_of(stored_type)
    matching = [r for r in ranges if r.matches(essence)]
    if not matching:
        return False
    best = max(matching, key=lambda r: (r.specificity, r.q))
    return best.q > 0
