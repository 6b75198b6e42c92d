"""
Unified Customer Service
Reconciles customer records from System A and System B into one unified view.
"""

__version__ = "1.0.0"
