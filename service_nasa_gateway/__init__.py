"""NASA Mission Control gateway service."""
