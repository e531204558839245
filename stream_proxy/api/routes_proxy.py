#!/usr/bin/env python3
# -*- coding:utf-8 -*-
import logging

from quart import Response, current_app, jsonify, request, stream_with_context

from stream_proxy import upstream
from stream_proxy.api import blueprint
from stream_proxy.config import CONFIG_KEY
from stream_proxy.errors import MissingParameter
from stream_proxy.manifest import rewrite_manifest

proxy_logger = logging.getLogger("proxy")
segment_logger = logging.getLogger("segment")

MANIFEST_CONTENT_TYPE = "application/vnd.apple.mpegurl"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma":        "no-cache",
    "Expires":       "0",
}

SEGMENT_CACHE_HEADERS = {
    "Cache-Control": "public, max-age=31536000",
    "Accept-Ranges": "bytes",
}


def _error_response(error):
    return jsonify(error.to_dict()), error.status_code


@blueprint.route("/api/proxy/stream", methods=["GET"])
async def proxy_stream():
    config = current_app.config[CONFIG_KEY]
    source_url = request.args.get("url")
    token = request.args.get("token")
    if not source_url:
        return _error_response(MissingParameter("url"))

    proxy_logger.info("Proxying manifest '%s'", source_url[:80])
    body, error = await upstream.fetch_manifest(source_url, token, config)
    if error is not None:
        return _error_response(error)

    try:
        updated_playlist = rewrite_manifest(body, source_url, token=token, segment_path=config.segment_path)
    except ValueError as exc:
        proxy_logger.error("Cannot rewrite manifest from '%s': %s", source_url, exc)
        return jsonify({"error": "Proxy failed", "message": str(exc)}), 500

    proxy_logger.debug("Modified Playlist Content:\n%s", updated_playlist)
    return Response(updated_playlist, status=200, content_type=MANIFEST_CONTENT_TYPE, headers=NO_CACHE_HEADERS)


@blueprint.route("/api/proxy/segment", methods=["GET"])
async def proxy_segment():
    config = current_app.config[CONFIG_KEY]
    segment_url = request.args.get("url")
    token = request.args.get("token")
    if not segment_url:
        return Response(MissingParameter("url").message, status=400, content_type="text/plain")

    stream, error = await upstream.open_segment_stream(
        segment_url,
        token,
        config,
        range_header=request.headers.get("Range"),
    )
    if error is not None:
        return Response("Segment fetch failed", status=500, content_type="text/plain")
    segment_logger.debug("Relaying segment '%s' (status %s)", segment_url[:80], stream.status)

    # An upstream failure is raised out of the body iterator, so the server
    # drops the client connection instead of ending a truncated body cleanly.
    @stream_with_context
    async def generate():
        try:
            async for chunk in stream.iter_chunks():
                yield chunk
        finally:
            # Also reached when a client disconnect cancels the response
            await stream.close()

    headers = dict(SEGMENT_CACHE_HEADERS)
    headers.update(stream.passthrough_headers())
    response = Response(
        generate(),
        status=206 if stream.status == 206 else 200,
        content_type=stream.content_type,
        headers=headers,
    )
    response.timeout = None  # Disable timeout for streaming response
    return response
