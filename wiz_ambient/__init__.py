"""
wiz_ambient
Screen-region ambient colour sync for WiZ-protocol RGB lights over UDP.
"""

__version__ = "0.1.0"
