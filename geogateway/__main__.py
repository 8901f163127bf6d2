"""Run the gateway with uvicorn: ``python -m geogateway``."""

import uvicorn

from geogateway.config import settings
from geogateway.logging_config import setup_logging


def main() -> None:
    setup_logging(settings.log_level, settings.log_format)
    uvicorn.run(
        "geogateway.api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
