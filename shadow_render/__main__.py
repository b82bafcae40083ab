"""Run the service with uvicorn: ``python -m shadow_render``."""

import uvicorn

from shadow_render.core.config import settings


def main() -> None:
    uvicorn.run("shadow_render.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
