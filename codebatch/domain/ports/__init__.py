"""Ports - interfaces the domain depends on."""
