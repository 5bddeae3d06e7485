# orcamento/core/charts.py
import io
from typing import Sequence

import matplotlib

matplotlib.use("Agg")  # Sem display no servidor
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from matplotlib.figure import Figure

from orcamento.core.aggregation import daily_totals
from orcamento.core.models import ExpenseRecord, ExpenseSummary
from orcamento.utils.text_utils import Locale

# Configurações globais para os gráficos
plt.style.use('seaborn-v0_8-darkgrid')
plt.rcParams['font.family'] = 'sans-serif'
plt.rcParams['font.size'] = 10
plt.rcParams['axes.titlesize'] = 14

# Cor da fatia "Sem categoria" e das barras do gráfico diário
FALLBACK_COLOR = '#7f7f7f'
BAR_COLOR = '#3b82f6'


def _to_png(fig: Figure) -> io.BytesIO:
    # Figure criada fora do pyplot: nada fica registrado no estado global
    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=150)
    buf.seek(0)
    return buf


def generate_category_pie_chart(summary: ExpenseSummary, locale: Locale) -> io.BytesIO:
    """Gráfico de pizza dos gastos por categoria, nas cores de cada categoria."""
    names = [aggregate.name for aggregate in summary.categories]
    totals = [aggregate.total for aggregate in summary.categories]
    colors = [aggregate.color or FALLBACK_COLOR for aggregate in summary.categories]

    fig = Figure(figsize=(8, 8))
    ax = fig.subplots()
    ax.pie(
        totals,
        labels=names,
        colors=colors,
        autopct='%1.1f%%',
        startangle=90,
        wedgeprops={'edgecolor': 'white'},
    )
    ax.set_title(locale.labels['category_chart_title'], fontweight='bold')
    ax.axis('equal')
    fig.tight_layout()
    return _to_png(fig)


def generate_daily_spending_chart(records: Sequence[ExpenseRecord], locale: Locale) -> io.BytesIO:
    """Gráfico de barras com o total gasto em cada dia do mês."""
    totals = daily_totals(records)
    labels = [day.strftime('%d') for day in totals.index]

    fig = Figure(figsize=(12, 6))
    ax = fig.subplots()
    ax.bar(labels, totals.values, color=BAR_COLOR)
    ax.set_title(locale.labels['daily_chart_title'], fontweight='bold')
    ax.set_ylabel(f"{locale.labels['amount']} ({locale.currency_symbol})")
    ax.yaxis.set_major_formatter(mticker.FormatStrFormatter(f'{locale.currency_symbol}%.2f'))
    for container in ax.containers:
        ax.bar_label(container, fmt='%.2f', fontsize=8, padding=3)
    fig.tight_layout()
    return _to_png(fig)
