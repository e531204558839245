#!/usr/bin/env python3
# -*- coding:utf-8 -*-
"""
Playlist rewriting.

Every media reference in an HLS playlist is replaced by a link to the segment
relay carrying the resolved absolute URL (and the auth token, if any) as query
parameters. Directive, comment and blank lines are emitted unchanged, and the
output always has exactly as many lines as the input.

Nothing in here performs I/O.
"""
import enum
from urllib.parse import quote, urlparse

from stream_proxy.config import SEGMENT_PATH

ABSOLUTE_PREFIXES = ("http://", "https://")
DEFAULT_PORTS = {"http": 80, "https": 443}

# Characters encodeURIComponent leaves alone besides the ones quote() always keeps
_COMPONENT_SAFE = "!~*'()"


class LineKind(enum.Enum):
    DIRECTIVE = "directive"
    BLANK = "blank"
    REFERENCE = "reference"


def encode_component(value):
    return quote(value, safe=_COMPONENT_SAFE)


def base_location(source_url):
    """
    Return ``scheme://host`` plus the directory part of the source URL path.

    https://cdn.example.com/live/abc/index.m3u8 -> https://cdn.example.com/live/abc
    """
    parsed = urlparse(source_url)
    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f"Not an absolute URL: {source_url!r}")

    # Host only: no userinfo, lower-cased, default port dropped
    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    port = parsed.port
    if port is not None and port != DEFAULT_PORTS.get(parsed.scheme):
        host = f"{host}:{port}"

    path = parsed.path
    directory = path[:path.rfind("/")] if "/" in path else ""
    return f"{parsed.scheme}://{host}{directory}"


def classify_line(line):
    if not line.strip():
        return LineKind.BLANK
    if line.startswith("#"):
        return LineKind.DIRECTIVE
    return LineKind.REFERENCE


def resolve_reference(reference, base):
    reference = reference.strip()
    if reference.startswith(ABSOLUTE_PREFIXES):
        return reference
    return f"{base}/{reference}"


def proxied_reference(absolute_url, token=None, segment_path=SEGMENT_PATH):
    proxied = f"{segment_path}?url={encode_component(absolute_url)}"
    if token:
        proxied = f"{proxied}&token={encode_component(token)}"
    return proxied


def rewrite_lines(lines, base, token=None, segment_path=SEGMENT_PATH):
    for line in lines:
        if classify_line(line) is not LineKind.REFERENCE:
            yield line
            continue
        yield proxied_reference(resolve_reference(line, base), token=token, segment_path=segment_path)


def rewrite_manifest(playlist_content, source_url, token=None, segment_path=SEGMENT_PATH):
    base = base_location(source_url)
    return "\n".join(rewrite_lines(playlist_content.split("\n"), base, token=token, segment_path=segment_path))
