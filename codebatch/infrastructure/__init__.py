"""Infrastructure - config, content, persistence, validators."""
