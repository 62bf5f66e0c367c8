"""
Core module for application configuration and utilities.

Note: the CAT engine is not imported at package level to avoid circular
imports with catexam.services (which depends on the pure CAT core).
Import it directly: from catexam.core.cat.engine import CATSessionManager
"""
from .config import settings
