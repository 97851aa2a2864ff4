"""
Shared business infrastructure: errors, input validation, keyed locks and
the unit of work. Kept import-light; the application factory loads
key_locks before the extensions exist.
"""
