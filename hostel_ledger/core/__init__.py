"""
Core utilities: exception hierarchy and logging helpers.
"""
