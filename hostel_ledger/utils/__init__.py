"""
Utility helpers for periods, dates and money arithmetic.
"""
