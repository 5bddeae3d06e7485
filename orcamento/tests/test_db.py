import datetime
import unittest
import uuid  # Para simular IDs UUID
from unittest.mock import MagicMock

import requests
from supabase import AuthApiError, Client  # Importar para tipagem do mock

from orcamento.core import db
from orcamento.core.errors import Unauthenticated


class TestDatabase(unittest.TestCase):
    def setUp(self):
        # Mock do cliente Supabase para todos os testes
        self.mock_supabase_client = MagicMock(spec=Client)

        # Mock para o retorno de .execute()
        self.mock_execute = MagicMock(data=[], count=None)

        # Mock que representa o objeto retornado por .table("...")
        # Os métodos encadeáveis devolvem o próprio mock: .select().eq().order().execute()
        self.mock_table_methods = MagicMock()
        for method in ("insert", "upsert", "select", "update", "delete", "eq", "gte", "lte", "or_", "order", "limit"):
            getattr(self.mock_table_methods, method).return_value = self.mock_table_methods
        self.mock_table_methods.execute.return_value = self.mock_execute

        self.mock_supabase_client.table.return_value = self.mock_table_methods
        self.mock_supabase_client.auth = MagicMock()

    def _expense_row(self, **overrides):
        row = {
            "id": str(uuid.uuid4()),
            "amount": 45.8,
            "description": "Supermercado - Compras da semana",
            "date": "2025-10-01T12:00:00+00:00",
            "category_id": "default-alimentacao",
            "user_id": "user-1",
            "categories": {
                "id": "default-alimentacao",
                "name": "Alimentação",
                "color": "#FF9149",
                "icon": "utensils",
                "is_default": True,
                "user_id": None,
            },
        }
        row.update(overrides)
        return row

    # --- Testes para get_user_id ---
    def test_get_user_id_success(self):
        self.mock_supabase_client.auth.get_user.return_value = MagicMock(user=MagicMock(id="user-1"))
        self.assertEqual(db.get_user_id(self.mock_supabase_client, "token"), "user-1")
        self.mock_supabase_client.auth.get_user.assert_called_once_with("token")

    def test_get_user_id_without_token(self):
        with self.assertRaises(Unauthenticated):
            db.get_user_id(self.mock_supabase_client, None)
        self.mock_supabase_client.auth.get_user.assert_not_called()

    def test_get_user_id_invalid_token(self):
        self.mock_supabase_client.auth.get_user.side_effect = AuthApiError("invalid JWT", 401, "bad_jwt")
        with self.assertRaises(Unauthenticated):
            db.get_user_id(self.mock_supabase_client, "token-invalido")

    def test_get_user_id_auth_service_unavailable(self):
        # Falha de rede não é token inválido: propaga para virar 500
        self.mock_supabase_client.auth.get_user.side_effect = requests.exceptions.ConnectionError("supabase fora do ar")
        with self.assertRaises(requests.exceptions.ConnectionError):
            db.get_user_id(self.mock_supabase_client, "token")

    def test_get_user_id_auth_server_error(self):
        self.mock_supabase_client.auth.get_user.side_effect = AuthApiError("internal error", 500, None)
        with self.assertRaises(AuthApiError):
            db.get_user_id(self.mock_supabase_client, "token")

    def test_get_user_id_no_user(self):
        self.mock_supabase_client.auth.get_user.return_value = MagicMock(user=None)
        with self.assertRaises(Unauthenticated):
            db.get_user_id(self.mock_supabase_client, "token")

    # --- Testes para get_expenses ---
    def test_get_expenses_empty(self):
        self.assertEqual(db.get_expenses(self.mock_supabase_client, "user-1"), [])
        self.mock_supabase_client.table.assert_called_with("expenses")
        self.mock_table_methods.eq.assert_called_once_with("user_id", "user-1")
        self.mock_table_methods.order.assert_called_once_with("date", desc=True)
        self.mock_table_methods.gte.assert_not_called()

    def test_get_expenses_month_range(self):
        start = datetime.datetime(2025, 10, 1)
        end = datetime.datetime(2025, 10, 31, 23, 59, 59)
        db.get_expenses(self.mock_supabase_client, "user-1", start, end)
        self.mock_table_methods.gte.assert_called_once_with("date", "2025-10-01T00:00:00")
        self.mock_table_methods.lte.assert_called_once_with("date", "2025-10-31T23:59:59")

    def test_get_expenses_category_filter(self):
        db.get_expenses(self.mock_supabase_client, "user-1", category_id="cat1")
        self.mock_table_methods.eq.assert_any_call("category_id", "cat1")

        self.mock_table_methods.eq.reset_mock()
        db.get_expenses(self.mock_supabase_client, "user-1", category_id="all")
        self.mock_table_methods.eq.assert_called_once_with("user_id", "user-1")

    def test_get_expenses_with_data(self):
        self.mock_execute.data = [
            self._expense_row(),
            self._expense_row(categories=None, category_id=None, amount="15.5"),
        ]
        expenses = db.get_expenses(self.mock_supabase_client, "user-1")
        self.assertEqual(len(expenses), 2)
        self.assertEqual(expenses[0].category.name, "Alimentação")
        self.assertEqual(expenses[0].date, datetime.datetime(2025, 10, 1, 12, 0))
        self.assertIsNone(expenses[1].category)
        self.assertEqual(expenses[1].amount, 15.5)
        self.assertEqual(expenses[1].category_name("Sem categoria"), "Sem categoria")

    def test_get_expenses_propagates_errors(self):
        self.mock_table_methods.execute.side_effect = Exception("Database connection error")
        with self.assertRaises(Exception):
            db.get_expenses(self.mock_supabase_client, "user-1")

    def test_get_expense_not_found(self):
        self.assertIsNone(db.get_expense(self.mock_supabase_client, "nao-existe"))

    # --- Testes para add_expense ---
    def test_add_expense(self):
        row = self._expense_row()
        self.mock_execute.data = [row]

        expense = db.add_expense(
            self.mock_supabase_client,
            "user-1",
            45.8,
            "Supermercado",
            "default-alimentacao",
            datetime.datetime(2025, 10, 1, 12, 0),
        )
        self.assertEqual(expense.id, row["id"])
        self.mock_table_methods.insert.assert_called_once()
        args, kwargs = self.mock_table_methods.insert.call_args
        inserted_data = args[0]
        self.assertEqual(inserted_data["amount"], 45.8)
        self.assertEqual(inserted_data["category_id"], "default-alimentacao")
        self.assertEqual(inserted_data["date"], "2025-10-01T12:00:00")
        self.assertEqual(inserted_data["user_id"], "user-1")

    def test_update_and_delete_expense(self):
        self.mock_execute.data = [self._expense_row(id="e1", amount=99.0)]
        expense = db.update_expense(self.mock_supabase_client, "e1", {"amount": 99.0})
        self.assertEqual(expense.amount, 99.0)
        self.mock_table_methods.update.assert_called_once_with({"amount": 99.0})

        db.delete_expense(self.mock_supabase_client, "e1")
        self.mock_table_methods.delete.assert_called_once()
        self.mock_table_methods.eq.assert_called_with("id", "e1")

    # --- Testes para categorias ---
    def test_get_categories(self):
        self.mock_execute.data = [
            {"id": "default-lazer", "name": "Lazer", "color": "#FF90BB", "icon": "smile", "is_default": True, "user_id": None},
            {"id": "cat2", "name": "Pets", "color": None, "icon": None, "is_default": False, "user_id": "user-1"},
        ]
        categories = db.get_categories(self.mock_supabase_client, "user-1")
        self.assertEqual([c.name for c in categories], ["Lazer", "Pets"])
        self.assertEqual(categories[1].color, "#60B5FF")
        self.assertEqual(categories[1].icon, "circle")
        self.mock_table_methods.or_.assert_called_once_with("is_default.eq.true,user_id.eq.user-1")

    def test_add_category(self):
        self.mock_execute.data = [
            {"id": "cat3", "name": "Pets", "color": "#000000", "icon": "dog", "is_default": False, "user_id": "user-1"}
        ]
        category = db.add_category(self.mock_supabase_client, "user-1", "Pets", "#000000", "dog")
        self.assertEqual(category.id, "cat3")
        args, _ = self.mock_table_methods.insert.call_args
        self.assertFalse(args[0]["is_default"])
        self.assertEqual(args[0]["user_id"], "user-1")

    def test_get_category_not_found(self):
        self.assertIsNone(db.get_category(self.mock_supabase_client, "x"))

    def test_count_category_expenses(self):
        self.mock_execute.count = 3
        self.assertEqual(db.count_category_expenses(self.mock_supabase_client, "cat1"), 3)
        self.mock_table_methods.select.assert_called_with("id", count="exact")

    def test_count_category_expenses_without_count(self):
        self.mock_execute.data = [{"id": "e1"}, {"id": "e2"}]
        self.assertEqual(db.count_category_expenses(self.mock_supabase_client, "cat1"), 2)

    def test_default_category_id(self):
        self.assertEqual(db.default_category_id("Saúde"), "default-saude")
        self.assertEqual(db.default_category_id("Educação"), "default-educacao")

    def test_seed_default_categories(self):
        self.mock_execute.data = [
            {"id": "default-saude", "name": "Saúde", "color": "#FF6363", "icon": "heart", "is_default": True, "user_id": None},
        ]
        created = db.seed_default_categories(self.mock_supabase_client)

        self.assertEqual([c.id for c in created], ["default-saude"])
        self.assertTrue(created[0].is_default)
        self.mock_supabase_client.table.assert_called_with("categories")
        args, kwargs = self.mock_table_methods.upsert.call_args
        rows = args[0]
        self.assertEqual(len(rows), 6)
        self.assertEqual(rows[0], {
            "id": "default-alimentacao",
            "name": "Alimentação",
            "color": "#FF9149",
            "icon": "utensils",
            "is_default": True,
            "user_id": None,
        })
        self.assertTrue(all(row["is_default"] and row["user_id"] is None for row in rows))
        self.assertEqual(kwargs, {"on_conflict": "id", "ignore_duplicates": True})
