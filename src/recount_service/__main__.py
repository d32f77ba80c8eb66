"""Run the API with uvicorn."""

from __future__ import annotations

import uvicorn

from recount_service.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "recount_service.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":  # pragma: no cover
    main()
