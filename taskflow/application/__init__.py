"""Application layer: DTOs, ports, engine-independent services and use cases."""
