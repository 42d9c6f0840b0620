#!/usr/bin/env python3
"""Main entry point for the Typesense exporter"""
import sys
import uvicorn
from pydantic import ValidationError
from config import Config
from app.server import MetricsServer
from logging_config import setup_structured_logging, get_logger, log_server_startup, log_error


def main():
    """Main application entry point"""
    logger = get_logger(__name__)
    try:
        config = Config()

        setup_structured_logging(config)
        logger = get_logger(__name__)

        log_server_startup(logger, config)

        server = MetricsServer(config)
        app = server.get_app()

        uvicorn.run(
            app,
            host=config.metrics_host,
            port=config.metrics_port,
            log_config=None  # We handle logging ourselves
        )

    except ValidationError as e:
        logger.error("Invalid configuration", error=str(e), event_type="config_error")
        sys.exit(1)
    except Exception as e:
        log_error(logger, e, {"component": "main", "phase": "startup"})
        sys.exit(1)


if __name__ == '__main__':
    main()
