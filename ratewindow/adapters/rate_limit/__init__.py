"""Rate limiting adapters.

``base`` defines the admission contract used by the HTTP layer; ``in_memory``
holds the per-process fixed-window implementation. A shared store (e.g.,
Redis) would be added as another implementation of the same interface.
"""
