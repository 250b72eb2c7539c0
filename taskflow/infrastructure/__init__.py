"""Infrastructure layer: cache, persistence and engine service implementations."""
