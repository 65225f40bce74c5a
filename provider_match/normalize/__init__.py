"""
Normalization utilities for ProviderMatch.

Field comparison rules (trimming, casing, whitespace stripping) and
configuration loading shared by the matcher, blocker and pipeline.
"""
