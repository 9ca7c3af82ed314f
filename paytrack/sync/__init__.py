"""Sync package: the queue of local writes awaiting the remote store."""

from paytrack.sync.mutation_queue import MutationQueue

__all__ = ["MutationQueue"]
