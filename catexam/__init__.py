"""
Computerized Adaptive Testing engine for pass/fail licensure-style exams.
"""
__version__ = "0.1.0"
