"""Run the upload service with uvicorn."""

import uvicorn

from gcsupload.core.config import settings


def main() -> None:
    # uvicorn handles SIGINT/SIGTERM and drains in-flight requests
    uvicorn.run(
        "gcsupload.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
