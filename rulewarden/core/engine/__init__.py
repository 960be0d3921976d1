"""Core registry engines.

Responsibilities:
  - Provide dependency ordering, breaking-change checks and effective-rule queries.
  - Must not own decisions; all reads go through the DecisionStore.
"""
