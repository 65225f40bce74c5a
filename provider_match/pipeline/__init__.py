"""
Batch pipeline for ProviderMatch.

Screens a file of candidate records against a corpus file.
"""
