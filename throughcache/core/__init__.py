"""Core Application Layer: the cache manager and the use cases built on it.

Connects the domain layer with the infrastructure layer through interfaces.
Contains the cache manager, the record service and the command handler.
"""
