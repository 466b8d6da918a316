"""Karaoke Session backend API."""
