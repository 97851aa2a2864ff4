"""
Data layer: SQLAlchemy models only. No business rules live here.
"""
