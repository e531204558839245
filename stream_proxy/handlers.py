#!/usr/bin/env python3
# -*- coding:utf-8 -*-
import logging

from quart import Response, jsonify, request
from werkzeug.exceptions import HTTPException

proxy_logger = logging.getLogger("proxy")

CORS_HEADERS = {
    "Access-Control-Allow-Origin":  "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


async def answer_preflight():
    if request.method == "OPTIONS":
        return Response("", status=204)
    return None


async def apply_cors_headers(response):
    # Runs before headers go out, so streamed responses are covered too
    for name, value in CORS_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def not_found(error):
    return jsonify({"error": "Not Found", "path": request.path}), 404


async def http_error(error):
    return jsonify({"error": error.name}), error.code


async def unhandled_error(error):
    proxy_logger.error(
        "Unhandled error serving %s %s", request.method, request.path,
        exc_info=(type(error), error, error.__traceback__),
    )
    return jsonify({"error": "Internal Server Error"}), 500


def register_http_handlers(app):
    app.before_request(answer_preflight)
    app.after_request(apply_cors_headers)
    app.register_error_handler(404, not_found)
    app.register_error_handler(HTTPException, http_error)
    app.register_error_handler(Exception, unhandled_error)
