"""Entry point for the Vehicle Docs API server.

Starts the FastAPI application with Uvicorn.  It is intended to be
executed from the project root, for example under Docker, where you
only specify a single Python file to run.

Configuration (storage backend, secret key, Supabase credentials …)
is read from environment variables; see
``vehicle_docs_api/app/core/config.py`` for the full list.

Usage:
    python run.py
"""
import logging
import os

from uvicorn import Config, Server

from vehicle_docs_api.app.main import app


def main() -> None:
    """Serve the API.

    Host and port are read from environment variables ``API_HOST`` and
    ``API_PORT``.  Defaults are ``0.0.0.0`` and ``8000``.
    """
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level=os.getenv("LOG_LEVEL", "info").lower())
    logging.getLogger(__name__).info("Starting Vehicle Docs API on %s:%s", host, port)
    Server(config).run()


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
