"""
Core Module
Contains the merge and diff engines and the lookup orchestrator.
"""
