"""Domain Events published by the cache manager."""
