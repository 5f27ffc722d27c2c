"""
Web interface for the analytics engine.
"""
