import errno
import logging
import socket

import uvicorn

from scroll.api.main import configure_logging, create_app
from scroll.config import Settings

logger = logging.getLogger(__name__)

MAX_PORT_ATTEMPTS = 50


def find_free_port(host: str, port: int, attempts: int = MAX_PORT_ATTEMPTS) -> int:
    """First port from `port` upwards that can be bound on host."""
    for candidate in range(port, port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, candidate))
            except OSError as e:
                if e.errno != errno.EADDRINUSE:
                    raise
                logger.warning("Port %d in use, trying %d", candidate, candidate + 1)
                continue
        return candidate
    raise RuntimeError(f"No free port in {port}-{port + attempts - 1}")


def main():
    configure_logging()
    settings = Settings.from_env()
    app = create_app(settings)
    port = find_free_port(settings.host, settings.port)
    logger.info("Server running at http://%s:%d", settings.host, port)
    uvicorn.run(app, host=settings.host, port=port, log_level="warning")


if __name__ == "__main__":
    main()
