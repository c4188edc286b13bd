"""Backing Source Resilience.

Contains wrappers that retry failed backing source calls with exponential
backoff. The cache manager itself never retries.
Bounded Context: Resilience
"""
