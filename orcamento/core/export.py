# orcamento/core/export.py
"""
Exportação dos gastos do mês: CSV para planilhas e relatório HTML para impressão.
"""
from typing import Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from orcamento.core.aggregation import month_range
from orcamento.core.models import ExpenseRecord, ExpenseSummary
from orcamento.utils.text_utils import (
    Locale,
    csv_quote,
    format_amount,
    format_currency,
    format_date,
    format_month_title,
)

# BOM para o Excel reconhecer o arquivo como UTF-8
UTF8_BOM = "\ufeff"

_env = Environment(
    loader=PackageLoader("orcamento", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["currency"] = format_currency
_env.filters["localdate"] = format_date


def csv_filename(month: int, year: int) -> str:
    return f"expenses_{month}_{year}.csv"


def render_csv(records: Sequence[ExpenseRecord], locale: Locale) -> str:
    """Gera o CSV (com BOM) dos gastos, na ordem recebida."""
    rows = [",".join(locale.csv_headers)]
    for record in records:
        rows.append(
            ",".join(
                [
                    format_date(record.date, locale),
                    csv_quote(record.description),
                    record.category_name(locale.fallback_category),
                    format_amount(record.amount),
                ]
            )
        )
    return UTF8_BOM + "\n".join(rows)


def render_report_html(
    summary: ExpenseSummary,
    records: Sequence[ExpenseRecord],
    month: int,
    year: int,
    locale: Locale,
) -> str:
    """Gera o relatório HTML estático do mês (resumo, tabela por categoria e detalhamento)."""
    start, end = month_range(month, year)
    template = _env.get_template("report.html")
    return template.render(
        locale=locale,
        labels=locale.labels,
        month_title=format_month_title(month, year, locale),
        start=start,
        end=end,
        summary=summary,
        records=records,
    )
