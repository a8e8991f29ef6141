"""CLI adapter reporting the sync mode and the pending mutations."""

from gridsync.infrastructure.container import build_application
from gridsync.infrastructure.logging.logger import get_usage_logger


def main() -> None:
    """Print the sync mode and the queue size of every resource."""
    app = build_application()
    queue = app.engine.queue
    mode = app.engine.mode()
    get_usage_logger().info(f"status run: mode={mode}")

    print(f"Sync mode: {mode}")
    for resource_key in app.configs:
        cached = app.engine.cache.read(resource_key)
        cached_count = "none" if cached is None else len(cached)
        print(
            f"{resource_key}: pending={queue.pending_count(resource_key)}, "
            f"cached={cached_count}"
        )
    print(f"Total pending mutations: {queue.pending_count()}")
    if queue.is_degraded or app.engine.cache.is_degraded:
        print("Warning: storage unavailable, counts reflect this session only.")
    for channel in app.channels:
        channel.close()


if __name__ == "__main__":  # pragma: no cover
    main()
