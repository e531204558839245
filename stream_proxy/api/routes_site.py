#!/usr/bin/env python3
# -*- coding:utf-8 -*-
import time
from datetime import datetime, timezone

import psutil
from quart import current_app, jsonify

import stream_proxy
from stream_proxy.api import blueprint

SERVICE_NAME = "Live Stream Proxy"


def _process_status():
    process = psutil.Process()
    memory_info = process.memory_info()
    return {
        "uptime": int(time.time() - process.create_time()),
        "memory": {"rss": memory_info.rss, "vms": memory_info.vms},
    }


@blueprint.route("/api/health", methods=["GET"])
async def health():
    payload = {
        "status":    "OK",
        "service":   SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version":   stream_proxy.__version__,
    }
    payload.update(_process_status())
    return jsonify(payload)


@blueprint.route("/", methods=["GET"])
async def generator_page():
    return await current_app.send_static_file("index.html")


@blueprint.route("/player", methods=["GET"])
@blueprint.route("/player.html", methods=["GET"])
async def player_page():
    return await current_app.send_static_file("player.html")
