"""
Core models: centers, citizens and center staff
"""

from .center import Center
from .citizen import Citizen, ID_TYPES
from .staff import Staff, STAFF_ROLES

__all__ = [
    'Center',
    'Citizen',
    'ID_TYPES',
    'Staff',
    'STAFF_ROLES',
]
