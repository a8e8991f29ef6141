"""Persisted queue of writes awaiting replay against the remote API."""

import uuid
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from gridsync.application.use_cases.persistence import PersistedDocuments
from gridsync.domain.models.sync import QueuedMutation


QUEUE_KEY = "sync-queue"


class MutationQueue(PersistedDocuments):
    """Ordered mutations for every resource, stored under one key.

    Entries of all resources share a single array; views are filtered by
    resource key at read time. Order within a resource is enqueue order.
    """

    def all(self) -> list[QueuedMutation]:
        """Return every pending mutation in enqueue order."""
        stored = self._load(QUEUE_KEY)
        if not isinstance(stored, list):
            return []
        mutations = []
        for entry in stored:
            try:
                mutations.append(QueuedMutation.from_record(entry))
            except (KeyError, TypeError, ValueError):
                self._logger.warning(
                    f"Ignoring unreadable queued mutation: {entry!r}"
                )
        return mutations

    def enqueue(
        self,
        resource_key: str,
        operation: str,
        payload: dict[str, Any],
        temp_id: str | None = None,
    ) -> QueuedMutation:
        """Append a mutation for later replay.

        Args:
            resource_key: Collection the write belongs to.
            operation: ``create``, ``update`` or ``delete``.
            payload: Body to replay remotely.
            temp_id: Placeholder id produced by an offline create.

        Returns:
            QueuedMutation: The stored entry.
        """
        mutation = QueuedMutation(
            id=uuid.uuid4().hex,
            resource_key=resource_key,
            operation=operation,
            payload=dict(payload),
            timestamp=datetime.now(timezone.utc).isoformat(),
            temp_id=temp_id,
        )
        self.persist([*self.all(), mutation])
        self._logger.info(
            f"Queued {operation} for {resource_key}"
            f" ({mutation.target_id or 'unknown id'})"
        )
        return mutation

    def drain(self, resource_key: str) -> list[QueuedMutation]:
        """Return the pending mutations of one resource, oldest first.

        Entries stay queued until :meth:`resolve` removes them, so a failed
        replay never loses a write.
        """
        return [
            mutation
            for mutation in self.all()
            if mutation.resource_key == resource_key
        ]

    def persist(self, mutations: Iterable[QueuedMutation]) -> None:
        """Replace the stored queue with ``mutations``."""
        self._save(QUEUE_KEY, [mutation.to_record() for mutation in mutations])

    def resolve(self, mutation_id: str) -> bool:
        """Remove one mutation after a successful replay.

        Returns:
            bool: True when the mutation was still queued.
        """
        current = self.all()
        remaining = [m for m in current if m.id != mutation_id]
        if len(remaining) == len(current):
            return False
        self.persist(remaining)
        return True

    def remap_id(self, resource_key: str, old_id: str, new_id: str) -> int:
        """Point pending mutations from a temporary id to a server id.

        Returns:
            int: Number of rewritten entries.
        """
        rewritten = 0
        mutations = []
        for mutation in self.all():
            if (
                mutation.resource_key == resource_key
                and mutation.operation != "create"
                and mutation.payload.get("id") == old_id
            ):
                mutation = replace(
                    mutation,
                    payload={**mutation.payload, "id": new_id},
                )
                rewritten += 1
            mutations.append(mutation)
        if rewritten:
            self.persist(mutations)
        return rewritten

    def pending_count(self, resource_key: str | None = None) -> int:
        if resource_key is None:
            return len(self.all())
        return len(self.drain(resource_key))


__all__ = ["MutationQueue", "QUEUE_KEY"]
