"""Lane orchestration: per-lane state machines, registry, carousel and search."""
