#!/usr/bin/env python3
# -*- coding:utf-8 -*-
import os
from dataclasses import dataclass, field
from types import MappingProxyType

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_REFERER = "https://www.physicswallah.com/"
DEFAULT_ORIGIN = "https://www.physicswallah.com"

SEGMENT_PATH = "/api/proxy/segment"
UPSTREAM_TIMEOUT = 30.0


def build_identity_headers(user_agent=DEFAULT_USER_AGENT, referer=DEFAULT_REFERER, origin=DEFAULT_ORIGIN):
    # aiohttp decodes gzip/deflate itself; "br" would need the brotli extra.
    return MappingProxyType({
        "User-Agent":      user_agent,
        "Accept":          "*/*",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
        "Referer":         referer,
        "Origin":          origin,
    })


@dataclass(frozen=True)
class ProxyConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    upstream_timeout: float = UPSTREAM_TIMEOUT
    segment_path: str = SEGMENT_PATH
    identity_headers: MappingProxyType = field(default_factory=build_identity_headers)
    debug: bool = False

    def upstream_headers(self, token=None):
        """Identity headers for one outbound request, plus the bearer token when given."""
        headers = dict(self.identity_headers)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers


# Where create_app() keeps the ProxyConfig in app.config
CONFIG_KEY = "PROXY_CONFIG"


def load_config(environ=None):
    environ = os.environ if environ is None else environ

    segment_path = environ.get("HLS_PROXY_SEGMENT_PATH", SEGMENT_PATH)
    if not segment_path.startswith("/"):
        segment_path = "/" + segment_path

    return ProxyConfig(
        host=environ.get("HLS_PROXY_HOST", "0.0.0.0"),
        port=int(environ.get("HLS_PROXY_PORT", environ.get("PORT", 3000))),
        upstream_timeout=float(environ.get("HLS_PROXY_UPSTREAM_TIMEOUT", UPSTREAM_TIMEOUT)),
        segment_path=segment_path,
        identity_headers=build_identity_headers(
            user_agent=environ.get("HLS_PROXY_USER_AGENT", DEFAULT_USER_AGENT),
            referer=environ.get("HLS_PROXY_REFERER", DEFAULT_REFERER),
            origin=environ.get("HLS_PROXY_ORIGIN", DEFAULT_ORIGIN),
        ),
        debug=environ.get("ENABLE_DEBUGGING", "false").lower() == "true",
    )
