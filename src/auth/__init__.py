"""Authentication for machine-to-machine endpoints."""
