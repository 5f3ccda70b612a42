"""
Entry point for running the service as a module: python -m bloomd
"""
import uvicorn

from bloomd.config import settings
from bloomd.main import app, setup_logging


def main() -> None:
    setup_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
