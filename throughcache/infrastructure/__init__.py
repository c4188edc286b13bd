"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the cache to the outside world (files, consoles, configuration)
by implementing the interfaces defined in the domain layer. Also includes
the in-memory entry store, the eviction policies and monitoring helpers.
"""
