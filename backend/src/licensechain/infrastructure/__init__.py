"""
Infrastructure package - SQL ledger persistence and document storage.
"""
