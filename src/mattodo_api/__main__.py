from __future__ import annotations

import uvicorn

from .settings import get_settings


def main() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run("mattodo_api.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
