"""
Clinic Risk Dashboard

Risk classification and dashboard analytics over clinic patient records.
"""
__version__ = "0.1.0"
