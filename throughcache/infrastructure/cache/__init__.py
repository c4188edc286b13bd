"""Entry store and eviction policy implementations.

Bounded Context: Cache Management
"""
