"""Domain Layer: cache models, events, errors and the ports the core depends on."""
