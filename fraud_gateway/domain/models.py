"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date as date_type, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


@dataclass
class Transaction:
    """Payment transaction as seen by the scorers"""

    merchant: str
    amount: float
    time: str  # "H:MM AM/PM"
    user_id: str
    source: Optional[str] = None  # "UPI", "Card", ...
    category: Optional[str] = None
    transaction_id: Optional[str] = None
    date: Optional[date_type] = None


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass
class RiskFactor:
    """One triggered rule, structured"""

    factor: str
    value: str
    risk: str
    weight: int


@dataclass
class RiskAnalysis:
    """Output of the rule-based transaction scorer"""

    risk_score: int
    risk_level: RiskLevel
    reasons: List[str]
    factors: List[RiskFactor]
    recommendation: str
    timestamp: datetime


@dataclass(frozen=True)
class NoRecentData:
    """No transaction history available to judge velocity"""


@dataclass(frozen=True)
class RecentActivity:
    """Count of earlier transactions inside the look-back window"""

    count: int
    window_seconds: int


VelocityCheck = Union[NoRecentData, RecentActivity]

NO_RECENT_DATA = NoRecentData()


@dataclass
class SpendingPatterns:
    """Running aggregate of a user's transactions"""

    average_transaction: float = 0.0
    max_transaction: float = 0.0
    min_transaction: Optional[float] = None  # None until the first transaction
    total_spent: float = 0.0
    transaction_count: int = 0
    frequent_merchants: Dict[str, int] = field(default_factory=dict)
    frequent_categories: Dict[str, int] = field(default_factory=dict)
    time_patterns: Dict[int, int] = field(default_factory=dict)
    day_patterns: Dict[str, int] = field(default_factory=dict)
    payment_methods: Dict[str, int] = field(default_factory=dict)


@dataclass
class BehavioralProfile:
    """Per-user behavioral baseline"""

    user_id: str
    patterns: SpendingPatterns
    last_updated: datetime
    risk_factors: List[str] = field(default_factory=list)
    trust_score: int = 50

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible document"""
        p = self.patterns
        return {
            "user_id": self.user_id,
            "patterns": {
                "average_transaction": p.average_transaction,
                "max_transaction": p.max_transaction,
                "min_transaction": p.min_transaction,
                "total_spent": p.total_spent,
                "transaction_count": p.transaction_count,
                "frequent_merchants": dict(p.frequent_merchants),
                "frequent_categories": dict(p.frequent_categories),
                # JSON object keys are strings
                "time_patterns": {str(hour): count for hour, count in p.time_patterns.items()},
                "day_patterns": dict(p.day_patterns),
                "payment_methods": dict(p.payment_methods),
            },
            "last_updated": self.last_updated.isoformat(),
            "risk_factors": list(self.risk_factors),
            "trust_score": self.trust_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BehavioralProfile":
        raw = data.get("patterns", {})
        patterns = SpendingPatterns(
            average_transaction=float(raw.get("average_transaction", 0.0)),
            max_transaction=float(raw.get("max_transaction", 0.0)),
            min_transaction=raw.get("min_transaction"),
            total_spent=float(raw.get("total_spent", 0.0)),
            transaction_count=int(raw.get("transaction_count", 0)),
            frequent_merchants=dict(raw.get("frequent_merchants", {})),
            frequent_categories=dict(raw.get("frequent_categories", {})),
            time_patterns={int(hour): count for hour, count in raw.get("time_patterns", {}).items()},
            day_patterns=dict(raw.get("day_patterns", {})),
            payment_methods=dict(raw.get("payment_methods", {})),
        )
        return cls(
            user_id=data["user_id"],
            patterns=patterns,
            last_updated=datetime.fromisoformat(data["last_updated"]),
            risk_factors=list(data.get("risk_factors", [])),
            trust_score=int(data.get("trust_score", 50)),
        )


@dataclass
class AnomalyResult:
    """Comparison of one transaction against the behavioral baseline"""

    is_anomalous: bool
    reasons: List[str]
    risk_score: int


@dataclass
class RankedItem:
    name: str
    count: int


@dataclass
class Insights:
    """Read-only summary of a behavioral profile"""

    top_merchants: List[RankedItem]
    top_categories: List[RankedItem]
    preferred_payment_method: str
    most_active_time: str
    most_active_day: str
    spending_trend: str


@dataclass
class ParsedTransaction:
    """Fields extracted from a bank SMS or notification"""

    confidence: int
    merchant: Optional[str] = None
    amount: Optional[float] = None
    time: Optional[str] = None
    date: Optional[str] = None  # DD-Mon-YY as written in the message
    source: Optional[str] = None
    type: Optional[str] = None  # "debit" or "credit"
    reference: Optional[str] = None
    balance: Optional[float] = None
