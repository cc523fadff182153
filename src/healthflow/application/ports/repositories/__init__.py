"""
Repository ports.
"""
