"""Run the service with uvicorn: ``python -m csvquery``."""

import uvicorn

from csvquery.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "csvquery.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.app_log_level.lower(),
    )


if __name__ == "__main__":
    main()
