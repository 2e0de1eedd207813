"""
Utilities package for the OAEP gateway.
"""
