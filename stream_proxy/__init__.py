#!/usr/bin/env python3
# -*- coding:utf-8 -*-
import logging
import os
from logging.config import dictConfig
from importlib import import_module

from quart import Quart

from stream_proxy.config import CONFIG_KEY, load_config
from stream_proxy.handlers import register_http_handlers
from stream_proxy.lifecycle import register_lifecycle_hooks

__version__ = "2.0.0"

dictConfig({
    'version':    1,
    'formatters': {
        'default': {
            'format': '%(asctime)s:%(levelname)s:%(name)s: %(message)s',
        }
    },
    'handlers':   {
        'wsgi': {
            'class':     'logging.StreamHandler',
            'stream':    'ext://sys.stderr',
            'formatter': 'default'
        }
    },
    'root':       {
        'level':    'INFO',
        'handlers': ['wsgi']
    }
})

enable_debugging = False
if os.environ.get('ENABLE_DEBUGGING', 'false').lower() == 'true':
    enable_debugging = True

STATIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")


def create_app(config=None):
    if config is None:
        config = load_config()

    # Create app; /js/* and /css/* come straight from the static folder
    app = Quart(__name__, static_folder=STATIC_DIR, static_url_path="")
    app.config[CONFIG_KEY] = config
    register_http_handlers(app)
    register_lifecycle_hooks(app)

    # Register the route blueprint once all route modules have attached to it
    for module_name in ('stream_proxy.api.routes_proxy', 'stream_proxy.api.routes_site'):
        module = import_module(module_name)
    app.register_blueprint(module.blueprint)

    level = logging.INFO
    if enable_debugging or config.debug:
        level = logging.DEBUG
    app.logger.setLevel(level)
    for logger_name in ('proxy', 'segment', 'hypercorn.error'):
        logging.getLogger(logger_name).setLevel(level)

    return app
