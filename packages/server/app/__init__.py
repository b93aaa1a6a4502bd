"""Noël Famille API server."""
