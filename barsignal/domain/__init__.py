"""Domain layer: bar/signal models, scoring, and message types."""
