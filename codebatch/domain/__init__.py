"""Domain layer - entities, ports, services."""
