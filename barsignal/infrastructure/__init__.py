"""Infrastructure: tick sources and observability."""
