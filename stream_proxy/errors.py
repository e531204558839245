#!/usr/bin/env python3
# -*- coding:utf-8 -*-
"""
Failure kinds for the proxy endpoints.

Upstream helpers hand these back as the second item of a ``(value, error)``
pair rather than raising them; the route handlers turn them into responses.
"""


class ProxyError(Exception):
    status_code = 500
    label = "Proxy failed"

    def __init__(self, message=""):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.label, "message": self.message}


class MissingParameter(ProxyError):
    status_code = 400

    def __init__(self, name):
        super().__init__(f"{name.upper()} parameter required")
        self.name = name

    def to_dict(self):
        return {"error": self.message}


class UpstreamFetchError(ProxyError):
    """The origin answered, but not with a usable status."""

    def __init__(self, upstream_status, details=None):
        super().__init__(f"Upstream responded with status {upstream_status}")
        self.upstream_status = upstream_status
        self.details = details

    @property
    def server_side(self):
        return self.upstream_status >= 500

    @property
    def status_code(self):
        # A leftover 1xx/3xx cannot be echoed as an error status
        if self.upstream_status >= 400:
            return self.upstream_status
        return 502

    @property
    def label(self):
        if self.server_side:
            return "Upstream server error"
        return "Stream fetch failed"

    def to_dict(self):
        payload = {"error": self.label, "status": self.upstream_status}
        if self.details:
            payload["details"] = self.details
        return payload


class TransportError(ProxyError):
    """The origin could not be reached (DNS, TLS, connection, timeout)."""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = details

    def to_dict(self):
        return {
            "error":   self.label,
            "message": self.message,
            "details": self.details or "No additional details",
        }
