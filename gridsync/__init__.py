"""Offline-first synchronization core for the Grid Manager stores."""

__all__: list[str] = []
