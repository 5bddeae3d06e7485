# orcamento/core/models.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd

DEFAULT_CATEGORY_COLOR = "#60B5FF"
DEFAULT_CATEGORY_ICON = "circle"


def parse_timestamp(value: Any) -> datetime:
    """Converte o valor de data vindo do Supabase (string ISO ou datetime) em datetime sem fuso."""
    timestamp = pd.to_datetime(value)
    if timestamp.tzinfo is not None:
        timestamp = timestamp.tz_localize(None)
    return timestamp.to_pydatetime()


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    icon: str = DEFAULT_CATEGORY_ICON
    is_default: bool = False
    user_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Category":
        return cls(
            id=row.get("id"),
            name=row["name"],
            color=row.get("color") or DEFAULT_CATEGORY_COLOR,
            icon=row.get("icon") or DEFAULT_CATEGORY_ICON,
            is_default=bool(row.get("is_default")),
            user_id=row.get("user_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "icon": self.icon,
            "isDefault": self.is_default,
            "userId": self.user_id,
        }


@dataclass(frozen=True)
class ExpenseRecord:
    """Gasto já filtrado por dono e período. A categoria ausente é resolvida aqui, uma única vez."""

    id: str
    amount: float
    description: str
    date: datetime
    category: Optional[Category] = None
    user_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ExpenseRecord":
        # O join do Supabase devolve a categoria aninhada em 'categories' (ou None)
        category_row = row.get("categories")
        category = None
        if category_row and category_row.get("name"):
            category_row = dict(category_row)
            category_row.setdefault("id", row.get("category_id"))
            category = Category.from_row(category_row)
        return cls(
            id=row.get("id"),
            amount=float(row.get("amount") or 0),
            description=row.get("description") or "",
            date=parse_timestamp(row["date"]),
            category=category,
            user_id=row.get("user_id"),
        )

    def category_name(self, fallback: str) -> str:
        return self.category.name if self.category else fallback

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "description": self.description,
            "date": self.date.isoformat(),
            "categoryId": self.category.id if self.category else None,
            "category": self.category.to_dict() if self.category else None,
            "userId": self.user_id,
        }


@dataclass(frozen=True)
class CategoryAggregate:
    name: str
    total: float
    count: int
    percentage: float
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "total": round(self.total, 2),
            "count": self.count,
            "percentage": round(self.percentage, 1),
            "color": self.color,
        }


@dataclass(frozen=True)
class ExpenseSummary:
    categories: List[CategoryAggregate] = field(default_factory=list)
    grand_total: float = 0.0
    count: int = 0

    def by_name(self) -> Dict[str, CategoryAggregate]:
        return {aggregate.name: aggregate for aggregate in self.categories}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": round(self.grand_total, 2),
            "count": self.count,
            "categories": [aggregate.to_dict() for aggregate in self.categories],
        }
