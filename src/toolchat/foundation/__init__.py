"""Foundation layer: configuration, errors, tool abstractions, registry, testing helpers."""
