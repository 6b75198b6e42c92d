"""
Sources Module
Contains the adapters for System A (SQLite) and System B (HTTP API).
"""

from .base import CustomerSource
from .system_a import SystemARepository, seed_system_a
from .system_b import SystemBClient
