"""Entry point for the standalone backend process."""

import uvicorn

from daz_content_installer.config import settings
from daz_content_installer.main import app


def main() -> None:
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
