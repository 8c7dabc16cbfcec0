"""Run the service: ``python -m notifier``."""

import logging
import sys

import uvicorn

from notifier.config import Settings
from notifier.errors import ConfigError
from notifier.main import create_app


def main() -> None:
    settings = Settings()
    try:
        settings.check_credentials()
    except ConfigError as exc:
        print(f"FATAL: {exc}. Refusing to start.", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.service_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
