"""Domain layer: entities, enums, exceptions and upstream value helpers."""
