"""
Service ports.
"""
