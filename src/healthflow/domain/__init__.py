"""
Domain layer: patient and prescription entities, value objects and errors.
"""
