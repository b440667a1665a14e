"""
Config-driven OAuth2 authorization-code connector for Flask applications.
"""

__version__ = "0.14.0"
