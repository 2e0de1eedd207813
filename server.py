#!/usr/bin/env python3
"""
OAEP gateway server.
Builds the Flask application and runs it from the command line.
"""
import argparse
import logging
from typing import List, Optional

from flask import Flask

import api
from config import Config, get_config, reset_config
from utils.crypto.crypto_manager import CryptoManager, set_crypto_manager

logger = logging.getLogger('server_app')


def create_app(config: Optional[Config] = None, crypto_manager: Optional[CryptoManager] = None) -> Flask:
    """
    Create the gateway application.

    Args:
        config: Configuration to install globally; defaults to the process config
        crypto_manager: Key holder to install globally; defaults to one built
            from ``config``

    Returns:
        The configured Flask app
    """
    if config is not None:
        reset_config(config)
    config = get_config()

    logging.basicConfig(level=logging.INFO if not config.is_production else logging.ERROR,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    manager = crypto_manager or CryptoManager.from_config(config)
    set_crypto_manager(manager)
    manager.preload()

    app = Flask(__name__)
    app.json.sort_keys = False
    api.init_app(app, metrics_enabled=bool(config.get('metrics.enabled', True)))

    if not config.is_production:
        logger.info(
            "Gateway ready (private key configured: %s, public key configured: %s, key cache: %s)",
            manager.has_key('private'),
            manager.has_key('public'),
            manager.cache_keys,
        )
    return app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    settings = get_config().server_settings
    parser = argparse.ArgumentParser(description="RSA-OAEP encryption gateway")
    parser.add_argument(
        "--host",
        default=settings.get('host', '127.0.0.1'),
        help="Interface to bind",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.get('port', 5000),
        help="Port to listen on",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=bool(settings.get('debug', False)),
        help="Run Flask in debug mode",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':  # pragma: no cover
    main()
