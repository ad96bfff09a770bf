"""Core configuration, persistence and auth plumbing."""
