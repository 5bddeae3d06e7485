# orcamento/utils/text_utils.py
import datetime
from dataclasses import dataclass
from typing import Dict, Tuple

from orcamento.core.errors import InvalidRequest


@dataclass(frozen=True)
class Locale:
    code: str
    language_name: str
    month_names: Tuple[str, ...]
    date_format: str
    currency_symbol: str
    fallback_category: str
    csv_headers: Tuple[str, str, str, str]
    # Rótulos usados no relatório impresso e no prompt
    labels: Dict[str, str]
    prompt_template: str


_PROMPT_PT_BR = """Você é um consultor financeiro experiente. Analise os gastos do usuário e forneça uma análise personalizada e prática.

**Gastos do mês:**
Total gasto: {currency} {total}
Número de transações: {count}

**Divisão por categoria:**
{categories}

**Sua tarefa:**
1. Analise o padrão de gastos do usuário
2. Identifique as categorias que mais consomem o orçamento
3. Forneça 3-5 dicas práticas e específicas para economizar
4. Seja encorajador e positivo
5. Use linguagem clara e amigável

Forneça uma análise completa e útil em {language}."""

_PROMPT_EN_US = """You are an experienced financial advisor. Analyze the user's expenses and provide a personalized, practical analysis.

**Expenses for the month:**
Total spent: {currency} {total}
Number of transactions: {count}

**Breakdown by category:**
{categories}

**Your task:**
1. Analyze the user's spending pattern
2. Identify the categories that consume most of the budget
3. Give 3-5 practical, specific tips to save money
4. Be encouraging and positive
5. Use clear and friendly language

Provide a complete and useful analysis in {language}."""


LOCALES: Dict[str, Locale] = {
    "pt-BR": Locale(
        code="pt-BR",
        language_name="português brasileiro",
        month_names=(
            "janeiro", "fevereiro", "março", "abril", "maio", "junho",
            "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
        ),
        date_format="%d/%m/%Y",
        currency_symbol="R$",
        fallback_category="Sem categoria",
        csv_headers=("Data", "Descrição", "Categoria", "Valor"),
        labels={
            "app_title": "Meu Orçamento Inteligente",
            "report_title": "Relatório de Gastos",
            "period": "Período",
            "expense_count": "Total de gastos",
            "total_spent": "Total gasto",
            "by_category": "Gastos por Categoria",
            "details": "Detalhamento dos Gastos",
            "category": "Categoria",
            "total": "Total",
            "percentage": "Porcentagem",
            "date": "Data",
            "description": "Descrição",
            "amount": "Valor",
            "of_total": "do total",
            "expenses": "gastos",
            "daily_chart_title": "Gastos por dia",
            "category_chart_title": "Gastos por categoria",
        },
        prompt_template=_PROMPT_PT_BR,
    ),
    "en-US": Locale(
        code="en-US",
        language_name="English",
        month_names=(
            "January", "February", "March", "April", "May", "June",
            "July", "August", "September", "October", "November", "December",
        ),
        date_format="%m/%d/%Y",
        currency_symbol="$",
        fallback_category="No category",
        csv_headers=("Date", "Description", "Category", "Amount"),
        labels={
            "app_title": "My Smart Budget",
            "report_title": "Expense Report",
            "period": "Period",
            "expense_count": "Number of expenses",
            "total_spent": "Total spent",
            "by_category": "Expenses by Category",
            "details": "Expense Details",
            "category": "Category",
            "total": "Total",
            "percentage": "Percentage",
            "date": "Date",
            "description": "Description",
            "amount": "Amount",
            "of_total": "of total",
            "expenses": "expenses",
            "daily_chart_title": "Expenses per day",
            "category_chart_title": "Expenses by category",
        },
        prompt_template=_PROMPT_EN_US,
    ),
}


def get_locale(code: str) -> Locale:
    """Retorna o Locale configurado. Códigos desconhecidos caem no pt-BR."""
    return LOCALES.get(code, LOCALES["pt-BR"])


def format_amount(value: float) -> str:
    return f"{value:.2f}"


def format_currency(value: float, locale: Locale) -> str:
    """Ex: 1200.0 -> "R$ 1200.00" """
    return f"{locale.currency_symbol} {format_amount(value)}"


def format_date(value: datetime.datetime, locale: Locale) -> str:
    return value.strftime(locale.date_format)


def format_month_title(month: int, year: int, locale: Locale) -> str:
    """Ex: (10, 2025) -> "outubro de 2025" no pt-BR, "October 2025" no en-US."""
    name = locale.month_names[month - 1]
    if locale.code == "pt-BR":
        return f"{name} de {year}"
    return f"{name} {year}"


def parse_month_year(month, year) -> Tuple[int, int]:
    """Valida mês (1-12) e ano vindos da requisição, aceitando números ou strings numéricas."""
    if month is None or year is None:
        raise InvalidRequest("Mês e ano são obrigatórios")
    try:
        month_int = int(month)
        year_int = int(year)
    except (TypeError, ValueError, OverflowError):
        raise InvalidRequest("Mês e ano devem ser números inteiros")
    # bool é subclasse de int; float só se for inteiro (10.0, não 10.7)
    if any(isinstance(v, bool) or isinstance(v, float) and not v.is_integer() for v in (month, year)):
        raise InvalidRequest("Mês e ano devem ser números inteiros")
    if not 1 <= month_int <= 12:
        raise InvalidRequest("Mês deve estar entre 1 e 12")
    if not 1 <= year_int <= 9999:
        raise InvalidRequest("Ano inválido")
    return month_int, year_int


def csv_quote(text: str) -> str:
    """Envolve o texto em aspas duplas, duplicando aspas internas."""
    return '"' + (text or "").replace('"', '""') + '"'
