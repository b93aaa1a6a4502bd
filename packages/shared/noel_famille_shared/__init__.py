"""Shared request/response schemas for the Noël Famille API."""
