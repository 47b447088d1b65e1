"""
LicenseChain - business license lifecycle and verification on a ledger.
"""

__version__ = "0.1.0"
