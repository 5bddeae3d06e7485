# orcamento/core/aggregation.py
"""
Agregação dos gastos de um período.

Transforma a lista de gastos (já filtrada por dono e mês) em totais,
contagens e porcentagens por categoria, além do total geral.
"""
import calendar
import datetime
from typing import List, Sequence, Tuple

import pandas as pd

from orcamento.core.errors import NoDataError
from orcamento.core.models import CategoryAggregate, ExpenseRecord, ExpenseSummary
from orcamento.utils.text_utils import parse_month_year


def month_range(month: int, year: int) -> Tuple[datetime.datetime, datetime.datetime]:
    """Primeiro instante do mês até 23:59:59 do último dia (intervalo inclusivo)."""
    month, year = parse_month_year(month, year)
    last_day = calendar.monthrange(year, month)[1]
    start = datetime.datetime(year, month, 1, 0, 0, 0)
    end = datetime.datetime(year, month, last_day, 23, 59, 59)
    return start, end


def _records_dataframe(records: Sequence[ExpenseRecord], fallback_label: str) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "category": [record.category_name(fallback_label) for record in records],
            "color": [record.category.color if record.category else None for record in records],
            "amount": [record.amount for record in records],
            "date": [record.date for record in records],
        }
    )


def aggregate_expenses(records: Sequence[ExpenseRecord], fallback_label: str) -> ExpenseSummary:
    """
    Agrupa os gastos pelo nome efetivo da categoria.

    Gastos sem categoria caem no rótulo `fallback_label`. Categorias diferentes com o
    mesmo nome são somadas juntas. A ordem das categorias segue a primeira aparição
    na lista recebida (que vem do banco ordenada por data decrescente).
    """
    if not records:
        raise NoDataError()

    df = _records_dataframe(records, fallback_label)
    grand_total = float(df["amount"].sum())

    grouped = df.groupby("category", sort=False).agg(
        total=("amount", "sum"),
        count=("amount", "size"),
        color=("color", "first"),
    )

    categories: List[CategoryAggregate] = []
    for name, row in grouped.iterrows():
        total = float(row["total"])
        # Total geral zero só acontece com todos os valores zerados
        percentage = 100 * total / grand_total if grand_total else 0.0
        color = row["color"] if isinstance(row["color"], str) else None
        categories.append(
            CategoryAggregate(
                name=name,
                total=total,
                count=int(row["count"]),
                percentage=percentage,
                color=color,
            )
        )

    return ExpenseSummary(categories=categories, grand_total=grand_total, count=len(records))


def daily_totals(records: Sequence[ExpenseRecord]) -> pd.Series:
    """Soma dos gastos por dia do mês, ordenada por data. Usada no gráfico de barras do painel."""
    if not records:
        return pd.Series(dtype=float)
    df = _records_dataframe(records, "")
    df["day"] = pd.to_datetime(df["date"]).dt.normalize()
    return df.groupby("day")["amount"].sum().sort_index()
