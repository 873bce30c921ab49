"""Track decision and reconstruction pipeline for opusmux."""
