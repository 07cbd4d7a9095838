"""Domain services - pure planning logic."""
