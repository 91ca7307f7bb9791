"""Scheduling bottleneck analysis service."""
