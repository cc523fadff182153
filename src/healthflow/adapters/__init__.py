"""
Adapters implementing the application ports.
"""
