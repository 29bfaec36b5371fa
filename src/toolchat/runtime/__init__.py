"""Runtime layer: concurrency, middleware, observability."""
