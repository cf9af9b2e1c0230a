"""Entry point for serving the Blog API.

Configuration such as the database URL, log level and CORS origins is
read from environment variables (see ``blog_api.app.core.config``).
Host and port are read from ``API_HOST`` and ``API_PORT``; defaults are
``0.0.0.0`` and ``3001``.

Usage:
    python run.py
"""
import asyncio
import logging
import os

from uvicorn import Config, Server

from blog_api.app.main import app


async def main() -> None:
    """Serve the API with Uvicorn until interrupted."""
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "3001"))
    config = Config(app=app, host=host, port=port, reload=False, log_level="info")
    server = Server(config)
    logging.getLogger(__name__).info("Serving Blog API on %s:%s", host, port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
