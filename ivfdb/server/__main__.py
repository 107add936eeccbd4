"""
Command-line entry point for ivfdb server.

Usage:
    python -m ivfdb.server [OPTIONS]

Options:
    --host TEXT         Host to bind to (default: 0.0.0.0)
    --port INTEGER      Port to bind to (default: 8000)
    --config TEXT       Engine settings YAML file
    --no-recover        Skip write-ahead log replay on startup
    --log-level TEXT    Log level (DEBUG, INFO, WARNING, ERROR)
"""

import argparse

from . import run_server
from .config import ServerConfig, set_config
from .app import create_app


def main():
    parser = argparse.ArgumentParser(
        description="ivfdb Server - Approximate Nearest Neighbor REST API"
    )

    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Engine settings YAML file (default: $IVFDB_CONFIG or config/default_config.yaml)"
    )
    parser.add_argument(
        "--no-recover",
        action="store_true",
        help="Do not replay the write-ahead log on startup"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level"
    )

    args = parser.parse_args()

    # Create config
    config = ServerConfig(
        host=args.host,
        port=args.port,
        config_path=args.config,
        recover_on_startup=not args.no_recover,
        log_level=args.log_level,
    )

    set_config(config)

    print(f"""
╔══════════════════════════════════════════════════════════╗
║                      ivfdb Server                        ║
╠══════════════════════════════════════════════════════════╣
║  Host:      {config.host:<44} ║
║  Port:      {config.port:<44} ║
║  Config:    {str(config.config_path or 'default'):<44} ║
║  Log Level: {config.log_level:<44} ║
║  API Docs:  http://{config.host}:{config.port}/docs{' ':<24} ║
╚══════════════════════════════════════════════════════════╝
    """)

    run_server(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
