"""HTTP middleware: Prometheus metrics and Redis rate limiting."""
