"""Core module for gammafit - domain models and the region-fit engine."""
