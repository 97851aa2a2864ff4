from __future__ import annotations

from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class StockSnapshot:
    """Detached, read-only copy of one stock entry's counters"""
    entry_id: int
    center_id: int
    vaccine_name: str
    total_stock: int
    remaining_stock: int
    used_doses: int
    wasted_doses: int

    @classmethod
    def from_entry(cls, entry) -> "StockSnapshot":
        return cls(
            entry_id=entry.id,
            center_id=entry.center_id,
            vaccine_name=entry.vaccine_name,
            total_stock=entry.total_stock or 0,
            remaining_stock=entry.remaining_stock or 0,
            used_doses=entry.used_doses or 0,
            wasted_doses=entry.wasted_doses or 0,
        )

    @property
    def is_balanced(self) -> bool:
        return self.total_stock == self.remaining_stock + self.used_doses + self.wasted_doses

    def to_dict(self) -> dict:
        return asdict(self)
