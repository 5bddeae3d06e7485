# orcamento/core/db.py
import datetime
import logging
import unicodedata
from typing import Any, Dict, List, Optional, Union

from supabase import AuthApiError, Client, create_client

from orcamento.core.errors import Unauthenticated
from orcamento.core.models import Category, ExpenseRecord

logger = logging.getLogger(__name__)

EXPENSE_COLUMNS = "id,amount,description,date,category_id,user_id,categories(id,name,color,icon,is_default,user_id)"
CATEGORY_COLUMNS = "id,name,color,icon,is_default,user_id"

# Categorias padrão, visíveis para todos os usuários
DEFAULT_CATEGORIES = [
    {"name": "Alimentação", "color": "#FF9149", "icon": "utensils"},
    {"name": "Transporte", "color": "#60B5FF", "icon": "car"},
    {"name": "Moradia", "color": "#80D8C3", "icon": "home"},
    {"name": "Lazer", "color": "#FF90BB", "icon": "smile"},
    {"name": "Saúde", "color": "#FF6363", "icon": "heart"},
    {"name": "Educação", "color": "#A19AD3", "icon": "book"},
]


def get_supabase_client(url: str, key: str) -> Client:
    """Retorna uma instância do cliente Supabase."""
    return create_client(url, key)


def get_user_id(supabase_client: Client, access_token: Union[str, None]) -> str:
    """
    Resolve o usuário dono do token de acesso do Supabase Auth.

    Só a recusa do token vira Unauthenticated; falhas de rede ou 5xx do Auth
    são propagadas.
    """
    if not access_token:
        raise Unauthenticated()
    try:
        response = supabase_client.auth.get_user(access_token)
    except AuthApiError as e:
        if e.status and e.status >= 500:
            raise
        logger.info("Token de acesso rejeitado pelo Supabase: %s", e)
        raise Unauthenticated() from e
    user = getattr(response, "user", None)
    if not user or not getattr(user, "id", None):
        raise Unauthenticated()
    return user.id


# --- Funções para Gastos ---
def get_expenses(
    supabase_client: Client,
    user_id: str,
    start: Union[datetime.datetime, None] = None,
    end: Union[datetime.datetime, None] = None,
    category_id: Union[str, None] = None,
) -> List[ExpenseRecord]:
    """Obtém os gastos do usuário, do mais recente para o mais antigo, com a categoria."""
    query = supabase_client.table("expenses").select(EXPENSE_COLUMNS).eq("user_id", user_id)
    if start and end:
        query = query.gte("date", start.isoformat()).lte("date", end.isoformat())
    if category_id and category_id != "all":
        query = query.eq("category_id", category_id)
    response = query.order("date", desc=True).execute()
    logger.debug("Supabase get_expenses: %d registros", len(response.data))
    return [ExpenseRecord.from_row(row) for row in response.data]


def get_expense(supabase_client: Client, expense_id: str) -> Optional[ExpenseRecord]:
    """Obtém um gasto pelo id, ou None se não existir."""
    response = supabase_client.table("expenses").select(EXPENSE_COLUMNS).eq("id", expense_id).execute()
    if not response.data:
        return None
    return ExpenseRecord.from_row(response.data[0])


def add_expense(
    supabase_client: Client,
    user_id: str,
    amount: float,
    description: str,
    category_id: str,
    date: datetime.datetime,
) -> ExpenseRecord:
    """Adiciona um novo gasto e devolve o registro com a categoria."""
    response = supabase_client.table("expenses").insert({
        "amount": amount,
        "description": description,
        "category_id": category_id,
        "date": date.isoformat(),
        "user_id": user_id,
    }).execute()
    created = response.data[0]
    return get_expense(supabase_client, created["id"]) or ExpenseRecord.from_row(created)


def update_expense(supabase_client: Client, expense_id: str, changes: Dict[str, Any]) -> ExpenseRecord:
    """Atualiza os campos informados de um gasto."""
    supabase_client.table("expenses").update(changes).eq("id", expense_id).execute()
    return get_expense(supabase_client, expense_id)


def delete_expense(supabase_client: Client, expense_id: str) -> None:
    supabase_client.table("expenses").delete().eq("id", expense_id).execute()


# --- Funções para Categorias ---
def get_categories(supabase_client: Client, user_id: str) -> List[Category]:
    """Obtém as categorias padrão e as do usuário: padrões primeiro, depois por nome."""
    response = (
        supabase_client.table("categories")
        .select(CATEGORY_COLUMNS)
        .or_(f"is_default.eq.true,user_id.eq.{user_id}")
        .order("is_default", desc=True)
        .order("name")
        .execute()
    )
    return [Category.from_row(row) for row in response.data]


def get_category(supabase_client: Client, category_id: str) -> Optional[Category]:
    response = supabase_client.table("categories").select(CATEGORY_COLUMNS).eq("id", category_id).execute()
    if not response.data:
        return None
    return Category.from_row(response.data[0])


def add_category(supabase_client: Client, user_id: str, name: str, color: str, icon: str) -> Category:
    """Adiciona uma nova categoria do usuário."""
    response = supabase_client.table("categories").insert({
        "name": name,
        "color": color,
        "icon": icon,
        "is_default": False,
        "user_id": user_id,
    }).execute()
    return Category.from_row(response.data[0])


def update_category(supabase_client: Client, category_id: str, changes: Dict[str, Any]) -> Category:
    response = supabase_client.table("categories").update(changes).eq("id", category_id).execute()
    return Category.from_row(response.data[0])


def delete_category(supabase_client: Client, category_id: str) -> None:
    supabase_client.table("categories").delete().eq("id", category_id).execute()


def count_category_expenses(supabase_client: Client, category_id: str) -> int:
    """Quantidade de gastos associados à categoria."""
    response = (
        supabase_client.table("expenses")
        .select("id", count="exact")
        .eq("category_id", category_id)
        .execute()
    )
    if response.count is not None:
        return response.count
    return len(response.data)


def default_category_id(name: str) -> str:
    """Ex: "Saúde" -> "default-saude"."""
    ascii_name = unicodedata.normalize("NFD", name.lower()).encode("ascii", "ignore").decode("ascii")
    return f"default-{ascii_name}"


def seed_default_categories(supabase_client: Client) -> List[Category]:
    """Cria as categorias padrão que ainda não existem; as existentes ficam como estão."""
    rows = [
        {**category, "id": default_category_id(category["name"]), "is_default": True, "user_id": None}
        for category in DEFAULT_CATEGORIES
    ]
    response = (
        supabase_client.table("categories")
        .upsert(rows, on_conflict="id", ignore_duplicates=True)
        .execute()
    )
    logger.info("Categorias padrão: %d criadas", len(response.data))
    return [Category.from_row(row) for row in response.data]
