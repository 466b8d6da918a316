"""HTTP API for Karaoke Session."""
