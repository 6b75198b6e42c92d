"""
Utilities Module
Contains helpers for normalizing values exchanged between systems.
"""

from .text_processing import normalize_email, is_valid_email, blank_to_none
