"""
Service entrypoint: ``python -m waotp`` or the ``waotp`` console script.
"""

import uvicorn

from waotp.api import create_app
from waotp.config import Settings
from waotp.logging import setup_logging


def main() -> None:
    settings = Settings.from_env()
    setup_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_output=settings.log_json,
    )
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        access_log=False,
    )


if __name__ == "__main__":
    main()
