"""
Matching engine for ProviderMatch.

Implements the edit-distance similarity metric and the ordered rule set
that classifies a candidate record against a corpus of existing entities.
"""
