"""
WastageAnalyzer - read-only wastage statistics over stock snapshots

Responsibilities:
- Per-entry, per-center and aggregate wastage rates
- High-risk flagging against a threshold, annotated with a predicted wastage
- Building a WastageReport for all centers, one center or a list of centers

Rates are ratios (0.0667); percentages are the same value x100 rounded to 2
decimals for display. Aggregates divide summed wasted doses by summed total
stock, never average per-row rates.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, List, Optional

from vaxcenter.business.analytics.wastage_estimator import FixedRatioEstimator, WastageEstimator
from vaxcenter.business.core import validation
from vaxcenter.business.core.errors import CenterNotFound, ValidationError
from vaxcenter.business.core.persistence import read_guard
from vaxcenter.business.stock.stock_ledger import StockLedger
from vaxcenter.data.core.center import Center
from vaxcenter.data.core.timestamped_base import utcnow
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.business.analytics.wastage_analyzer")

DEFAULT_RISK_THRESHOLD = 0.05


def wastage_rate(total_stock: int, wasted_doses: int) -> float:
    """wasted / total, 0 when nothing was ever stocked"""
    if not total_stock:
        return 0.0
    return wasted_doses / total_stock


def as_percent(rate: float) -> float:
    return round(rate * 100, 2)


@dataclass(frozen=True)
class WastageRow:
    """Counters of one stock entry, or of one center when vaccine_name is None"""
    center_id: Optional[int]
    total_stock: int
    remaining_stock: int
    used_doses: int
    wasted_doses: int
    vaccine_name: Optional[str] = None
    center_name: Optional[str] = None
    predicted_wastage: Optional[float] = None

    @classmethod
    def from_snapshot(cls, snapshot) -> "WastageRow":
        return cls(
            center_id=snapshot.center_id,
            vaccine_name=snapshot.vaccine_name,
            total_stock=snapshot.total_stock,
            remaining_stock=snapshot.remaining_stock,
            used_doses=snapshot.used_doses,
            wasted_doses=snapshot.wasted_doses,
        )

    @property
    def rate(self) -> float:
        return wastage_rate(self.total_stock, self.wasted_doses)

    @property
    def percent(self) -> float:
        return as_percent(self.rate)

    def to_dict(self) -> dict:
        data = {
            "center_id": self.center_id,
            "center_name": self.center_name,
            "total_stock": self.total_stock,
            "remaining_stock": self.remaining_stock,
            "used_doses": self.used_doses,
            "wasted_doses": self.wasted_doses,
            "wastage_rate": round(self.rate, 4),
            "wastage_percent": self.percent,
        }
        if self.vaccine_name is not None:
            data["vaccine_name"] = self.vaccine_name
        if self.predicted_wastage is not None:
            data["predicted_wastage"] = self.predicted_wastage
        return data


@dataclass
class WastageReport:
    scope: Optional[List[int]]
    total_stock: int
    remaining_stock: int
    used_doses: int
    wasted_doses: int
    threshold: float
    estimator: str
    centers: List[WastageRow] = field(default_factory=list)
    high_risk_centers: List[WastageRow] = field(default_factory=list)
    generated_at: datetime = field(default_factory=utcnow)

    @property
    def wastage_rate(self) -> float:
        return wastage_rate(self.total_stock, self.wasted_doses)

    @property
    def wastage_percent(self) -> float:
        return as_percent(self.wastage_rate)

    @property
    def is_high_risk(self) -> bool:
        return self.wastage_rate > self.threshold

    def to_dict(self) -> dict:
        return {
            "scope": self.scope,
            "generated_at": self.generated_at.isoformat(),
            "total_stock": self.total_stock,
            "remaining_stock": self.remaining_stock,
            "used_doses": self.used_doses,
            "wasted_doses": self.wasted_doses,
            "wastage_rate": round(self.wastage_rate, 4),
            "wastage_percent": self.wastage_percent,
            "threshold_percent": as_percent(self.threshold),
            "is_high_risk": self.is_high_risk,
            "estimator": self.estimator,
            "centers": [row.to_dict() for row in self.centers],
            "high_risk_centers": [row.to_dict() for row in self.high_risk_centers],
        }


class WastageAnalyzer:
    """Wastage statistics over unlocked ledger snapshots"""

    def __init__(self, ledger: StockLedger | None = None, estimator: WastageEstimator | None = None,
                 threshold: float = DEFAULT_RISK_THRESHOLD):
        if threshold < 0:
            raise ValueError("threshold must not be negative")
        self.ledger = ledger or StockLedger()
        self.estimator = estimator or FixedRatioEstimator()
        self.threshold = threshold

    @staticmethod
    def _as_row(entry) -> WastageRow:
        return entry if isinstance(entry, WastageRow) else WastageRow.from_snapshot(entry)

    @staticmethod
    def aggregate_rate(entries: Iterable) -> float:
        entries = list(entries)
        return wastage_rate(
            sum(entry.total_stock for entry in entries),
            sum(entry.wasted_doses for entry in entries),
        )

    @staticmethod
    def per_center(entries: Iterable, center_names: dict | None = None) -> List[WastageRow]:
        """Sum entry counters per center, in first-seen center order"""
        center_names = center_names or {}
        sums: "OrderedDict[int, list]" = OrderedDict()
        for entry in entries:
            counters = sums.setdefault(entry.center_id, [0, 0, 0, 0])
            counters[0] += entry.total_stock
            counters[1] += entry.remaining_stock
            counters[2] += entry.used_doses
            counters[3] += entry.wasted_doses
        return [
            WastageRow(
                center_id=center_id,
                center_name=center_names.get(center_id),
                total_stock=total,
                remaining_stock=remaining,
                used_doses=used,
                wasted_doses=wasted,
            )
            for center_id, (total, remaining, used, wasted) in sums.items()
        ]

    def high_risk(self, entries: Iterable, threshold: float | None = None) -> List[WastageRow]:
        """
        Entries whose wastage rate exceeds the threshold.

        Args:
            entries: WastageRow or StockSnapshot items
            threshold: Ratio, defaults to the analyzer's threshold

        Returns:
            list: WastageRow copies annotated with ``predicted_wastage``
        """
        threshold = self.threshold if threshold is None else threshold
        flagged = []
        for entry in entries:
            row = self._as_row(entry)
            if row.rate > threshold:
                flagged.append(replace(
                    row,
                    predicted_wastage=self.estimator.predict(row.total_stock, row.wasted_doses),
                ))
        return flagged

    @staticmethod
    def _resolve_scope(scope) -> Optional[List[int]]:
        if scope is None:
            return None
        if isinstance(scope, (list, tuple, set)):
            center_ids = [validation.entity_id(value, "center_id") for value in scope]
            if not center_ids:
                raise ValidationError("scope must name at least one center", field="scope")
            return sorted(set(center_ids))
        return [validation.entity_id(scope, "center_id")]

    def compute_wastage(self, scope=None) -> WastageReport:
        """
        Build a wastage report.

        Args:
            scope: None for every center, a center id, or a list of center ids

        Raises:
            ValidationError, CenterNotFound, Unavailable
        """
        center_ids = self._resolve_scope(scope)

        with read_guard():
            query = Center.query
            if center_ids is not None:
                query = query.filter(Center.id.in_(center_ids))
            center_names = {center.id: center.center_name for center in query.all()}

        if center_ids is not None:
            missing = [center_id for center_id in center_ids if center_id not in center_names]
            if missing:
                raise CenterNotFound("Center not found.", center_ids=missing)

        snapshots = self.ledger.snapshots(center_ids)
        centers = self.per_center(snapshots, center_names)

        report = WastageReport(
            scope=center_ids,
            total_stock=sum(row.total_stock for row in centers),
            remaining_stock=sum(row.remaining_stock for row in centers),
            used_doses=sum(row.used_doses for row in centers),
            wasted_doses=sum(row.wasted_doses for row in centers),
            threshold=self.threshold,
            estimator=self.estimator.label,
            centers=centers,
            high_risk_centers=self.high_risk(centers),
        )
        logger.info(
            f"Wastage report over {len(centers)} centers: {report.wastage_percent}% "
            f"({len(report.high_risk_centers)} high risk)"
        )
        return report
