"""memberlink API service."""
