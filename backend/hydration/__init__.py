"""Hydration pipeline: normalise, sample, merge, and persist crime data per postcode."""
