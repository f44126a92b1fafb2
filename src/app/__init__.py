"""AreaScope HTTP service."""
