"""Entry point: python -m dispute_reporter"""

import uvicorn

from dispute_reporter.config import settings


def main() -> None:
    # uvicorn handles SIGINT/SIGTERM and runs the lifespan shutdown
    uvicorn.run(
        "dispute_reporter.api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
