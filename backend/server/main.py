"""
Process entry point for the intercom.

Loads .env, builds the app from environment configuration and serves
the control API with uvicorn.
"""

from __future__ import annotations

import uvicorn
from dotenv import load_dotenv

from config import AppConfig
from server.app import create_app


def main() -> None:
    load_dotenv()
    config = AppConfig.load_from_env()

    uvicorn.run(
        create_app(config),
        host=config.http_host,
        port=config.http_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
