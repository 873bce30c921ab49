"""Data models for opusmux."""
