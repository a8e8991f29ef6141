"""CLI adapter replaying queued offline mutations against the API.

This module wires the sync engine to the concrete storage and HTTP adapters
and provides a command-line entry point for draining the mutation queue.
"""

import asyncio

from gridsync.domain.models.sync import FlushReport
from gridsync.infrastructure.container import Application, build_application
from gridsync.infrastructure.logging.logger import (
    get_app_logger,
    get_usage_logger,
)


async def _flush(app: Application) -> list[FlushReport]:
    try:
        return await app.flush_all()
    finally:
        await app.aclose()


def main() -> None:
    """Flush the pending mutations of every configured resource."""
    logger = get_app_logger()
    app = build_application()
    if not app.auth_gate.is_authenticated():
        logger.warning("Not authenticated; queued mutations stay pending.")
        print("Offline: no access token available, nothing was flushed.")
        return

    reports = asyncio.run(_flush(app))
    get_usage_logger().info(
        f"flush run: {sum(report.succeeded for report in reports)} replayed"
    )
    for report in reports:
        print(
            f"{report.resource_key}: attempted={report.attempted}, "
            f"succeeded={report.succeeded}, failed={report.failed}, "
            f"skipped={report.skipped}"
        )
        for error in report.errors:
            print(f"  error: {error}")


if __name__ == "__main__":  # pragma: no cover
    main()
