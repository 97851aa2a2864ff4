"""
Presentation layer: JSON routes over the service facade.
"""
