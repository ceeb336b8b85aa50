"""
utils/ - Shared helpers (logging, shutdown signalling).
"""
