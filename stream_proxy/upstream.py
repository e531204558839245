#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Outbound requests to the origin server.

Both helpers return ``(value, error)``; exactly one of the two is ``None``.
A fresh aiohttp session is opened per call so nothing is shared between
inbound requests.
"""
import asyncio
import logging

import aiohttp

from stream_proxy.errors import TransportError, UpstreamFetchError

proxy_logger = logging.getLogger("proxy")
segment_logger = logging.getLogger("segment")

DEFAULT_SEGMENT_CONTENT_TYPE = "video/MP2T"
MAX_ERROR_DETAILS = 2048


def _describe_transport_failure(exc, timeout):
    if isinstance(exc, asyncio.TimeoutError):
        return f"Upstream request timed out after {timeout:g} seconds"
    return str(exc) or exc.__class__.__name__


async def fetch_manifest(source_url, token, config):
    """Fetch a playlist body as text."""
    timeout = aiohttp.ClientTimeout(total=config.upstream_timeout)
    headers = config.upstream_headers(token)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(source_url, headers=headers) as resp:
                if resp.status != 200:
                    details = None
                    if resp.status >= 500:
                        details = (await resp.text(errors="replace"))[:MAX_ERROR_DETAILS] or None
                    proxy_logger.error("Manifest fetch failed with status %s for '%s'", resp.status, source_url)
                    return None, UpstreamFetchError(resp.status, details=details)
                return await resp.text(errors="replace"), None
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
        message = _describe_transport_failure(exc, config.upstream_timeout)
        proxy_logger.error("Manifest fetch for '%s' failed: %s", source_url, message)
        return None, TransportError(message)


class SegmentStream:
    """
    An open upstream segment response.

    Chunks are read straight off the upstream connection; closing the stream
    drops that connection and its session.
    """

    def __init__(self, session, response):
        self.session = session
        self.response = response
        self.closed = False

    @property
    def status(self):
        return self.response.status

    @property
    def content_type(self):
        return self.response.headers.get("Content-Type") or DEFAULT_SEGMENT_CONTENT_TYPE

    def passthrough_headers(self):
        headers = {}
        content_range = self.response.headers.get("Content-Range")
        if content_range:
            headers["Content-Range"] = content_range
        # A decoded body no longer matches the upstream length
        content_length = self.response.headers.get("Content-Length")
        if content_length and not self.response.headers.get("Content-Encoding"):
            headers["Content-Length"] = content_length
        return headers

    async def iter_chunks(self, chunk_size=65536):
        try:
            async for chunk in self.response.content.iter_chunked(chunk_size):
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            # The body is incomplete; callers must not end it as if it were whole
            segment_logger.warning("Segment stream from '%s' broke off: %s", self.response.url, exc)
            raise
        finally:
            await self.close()

    async def close(self):
        if self.closed:
            return
        self.closed = True
        self.response.close()
        await self.session.close()


async def open_segment_stream(segment_url, token, config, range_header=None):
    """Open a segment for streaming; the caller owns the returned SegmentStream."""
    # A total bound would cut off long segments, so only connect and per-read waits are limited
    timeout = aiohttp.ClientTimeout(
        total=None,
        sock_connect=config.upstream_timeout,
        sock_read=config.upstream_timeout,
    )
    headers = config.upstream_headers(token)
    if range_header:
        headers["Range"] = range_header

    session = aiohttp.ClientSession(timeout=timeout)
    try:
        resp = await session.get(segment_url, headers=headers)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
        await session.close()
        message = _describe_transport_failure(exc, config.upstream_timeout)
        segment_logger.error("Segment fetch for '%s' failed: %s", segment_url, message)
        return None, TransportError(message)

    if not 200 <= resp.status < 300:
        await resp.release()
        await session.close()
        segment_logger.error("Segment fetch failed with status %s for '%s'", resp.status, segment_url)
        return None, UpstreamFetchError(resp.status)

    return SegmentStream(session, resp), None
