"""Entry point for cadence-admin service.

Runs a single worker: background voice syncs live in the process that
scheduled them.
"""

import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run(
        "cadence_admin.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=False,
        workers=1,
    )


if __name__ == "__main__":
    main()
