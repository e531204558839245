#!/usr/bin/env python3
# -*- coding:utf-8 -*-
import asyncio
import logging
import signal

from stream_proxy.config import CONFIG_KEY

proxy_logger = logging.getLogger("proxy")

EXIT_SIGNALS = ("SIGINT", "SIGTERM")


def _log_loop_exception(loop, context):
    exc = context.get("exception")
    proxy_logger.error(
        "Unhandled exception in event loop: %s",
        context.get("message", "no message"),
        exc_info=(type(exc), exc, exc.__traceback__) if exc else None,
    )


def _exit_now(signame):
    proxy_logger.warning("%s received, exiting without draining open requests", signame)
    raise SystemExit(0)


def _exit_signals():
    return [getattr(signal, name) for name in EXIT_SIGNALS if hasattr(signal, name)]


def register_lifecycle_hooks(app):
    @app.before_serving
    async def _on_startup():
        loop = asyncio.get_running_loop()
        # Stray task failures are logged and the server keeps going
        loop.set_exception_handler(_log_loop_exception)
        for sig in _exit_signals():
            try:
                loop.add_signal_handler(sig, _exit_now, sig.name)
            except NotImplementedError:
                # No loop signal support (Windows); the server's own handlers stay in place
                break
        config = app.config[CONFIG_KEY]
        proxy_logger.info("Live stream proxy listening on %s:%s", config.host, config.port)
        proxy_logger.info("Upstream timeout: %ss, segment relay path: %s", config.upstream_timeout, config.segment_path)

    @app.after_serving
    async def _on_shutdown():
        loop = asyncio.get_running_loop()
        for sig in _exit_signals():
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                break
        proxy_logger.info("Live stream proxy stopped")
