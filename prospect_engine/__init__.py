"""
Prospect Engine - Company Resolution Pipeline
=============================================
Turns noisy imported company strings into scored prospects:
  Classification: Deterministic → Search-Grounded → Batch LLM → Fail Open
  Enrichment:     Grounded web-search extraction, LLM-memory fallback
  ICP Scoring:    Quantitative formula blended with an LLM fit rating
"""

__version__ = "1.0.0"
