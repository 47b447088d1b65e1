"""
API package - HTTP presentation layer over the license services.
"""
