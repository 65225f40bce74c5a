"""
Blocking module for ProviderMatch.

Builds cheap phonetic and contact keys to shortlist corpus entities
before the full rule evaluation.
"""
