"""
Decision Accountability OS backend.

Parses LLM scan replies into findings and opportunities, derives
exposure and priority figures, and keeps a decision journal.
"""
__version__ = "1.0.0"
