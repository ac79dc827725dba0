"""
Configuration Package

All default settings live in config/settings.py.
"""
