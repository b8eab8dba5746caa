"""Infrastructure layer: configuration helpers, logging, storage."""
