"""
Core engine: record parsing, risk rules and dashboard analytics.
"""
