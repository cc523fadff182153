"""
External AI and messaging services.
"""
