from __future__ import annotations

import uvicorn

from .config import ServiceSettings


def main() -> None:
    settings = ServiceSettings.from_env()
    uvicorn.run(
        "kifutree.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        access_log=False,
        reload=settings.reload,
    )


if __name__ == "__main__":
    main()
