"""Shared utilities for opusmux."""
