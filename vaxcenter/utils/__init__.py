"""
Utility helpers: log sanitizing and console report rendering.
"""
