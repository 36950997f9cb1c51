"""Rizz Codes backend."""
