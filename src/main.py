# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Server entry point.

Run with ``python -m src.main``; host, port, workers and reload come
from the API_* environment variables.
"""

import logging

import uvicorn

from src.core.config import get_settings
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    setup_logging(settings)

    # Stores are per-process memory; more workers would each see a different history.
    if settings.api.workers > 1:
        logger.warning(
            "API_WORKERS=%d ignored: in-memory stores require a single worker process",
            settings.api.workers,
        )

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        workers=1,
        reload=settings.api.reload,
    )


if __name__ == "__main__":
    main()
