"""
Domain package - Core license rules with no external dependencies.

This package contains pure Python models and rules: the record codec,
registration number normalization, the lifecycle state machine and the
authorization gate. Nothing here performs I/O or logging.
"""
