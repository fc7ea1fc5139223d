"""Axis layout and matplotlib rendering for rate-through-time summaries."""
