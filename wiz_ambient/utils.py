"""
utils.py
General utility functions for the ambient colour sync application.
"""


def clamp(x, min_val, max_val):
    return max(min(x, max_val), min_val)
