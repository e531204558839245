#!/usr/bin/env python3
# -*- coding:utf-8 -*-
from stream_proxy import create_app, enable_debugging
from stream_proxy.config import CONFIG_KEY

# Create app
app = create_app()
if enable_debugging:
    app.logger.info(' DEBUGGING   = ' + str(enable_debugging))

if __name__ == "__main__":
    config = app.config[CONFIG_KEY]

    # Start Quart server; SIGINT/SIGTERM exit straight away, open requests are not drained
    app.logger.info("Starting Quart server...")
    app.run(debug=config.debug, host=config.host, port=config.port, use_reloader=False)
    app.logger.info("Quart server completed.")
