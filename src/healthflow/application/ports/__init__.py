"""
Ports (interfaces) implemented by the adapters layer.
"""
