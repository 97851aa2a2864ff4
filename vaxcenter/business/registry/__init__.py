"""
Registry business layer: centers, citizens and center staff.
"""

from vaxcenter.business.registry.center_registry import CenterRegistry
from vaxcenter.business.registry.citizen_registry import CitizenRegistry
from vaxcenter.business.registry.staff_roster import StaffRoster

__all__ = [
    'CenterRegistry',
    'CitizenRegistry',
    'StaffRoster',
]
