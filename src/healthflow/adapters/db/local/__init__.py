"""
Local key-value backed repositories.
"""
