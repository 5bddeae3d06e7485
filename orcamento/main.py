# orcamento/main.py
import datetime
import logging
import math
from typing import Any, Dict, List, Union

import click
import requests
from flask import Flask, Response, current_app, jsonify, request, send_file
from werkzeug.exceptions import HTTPException

from orcamento.config import get_config
from orcamento.core import ai, charts, db
from orcamento.core.aggregation import aggregate_expenses, month_range
from orcamento.core.errors import (
    Forbidden,
    InvalidRequest,
    NoDataError,
    NotFound,
    OrcamentoError,
)
from orcamento.core.export import csv_filename, render_csv, render_report_html
from orcamento.core.models import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    Category,
    ExpenseRecord,
    parse_timestamp,
)
from orcamento.core.stream_reader import iter_deltas
from orcamento.utils.text_utils import Locale, get_locale, parse_month_year

logger = logging.getLogger(__name__)

REPORT_ACTIONS = (None, "", "html", "csv", "ai")

# Gastos de exemplo do comando seed: (valor, descrição, categoria padrão, data)
SAMPLE_EXPENSES = [
    (45.80, "Supermercado - Compras da semana", "Alimentação", datetime.datetime(2025, 10, 1)),
    (15.00, "Uber para o trabalho", "Transporte", datetime.datetime(2025, 10, 2)),
    (1200.00, "Aluguel do mês", "Moradia", datetime.datetime(2025, 10, 1)),
    (80.00, "Cinema com amigos", "Lazer", datetime.datetime(2025, 10, 3)),
]


def create_app(
    config: Union[Dict[str, Any], None] = None,
    supabase_client=None,
    llm_session: Union[requests.Session, None] = None,
) -> Flask:
    """
    Cria a aplicação Flask.

    O cliente Supabase e a sessão HTTP da API de IA são criados aqui e guardados
    em app.extensions; as rotas os recebem explicitamente, sem estado global.
    """
    app = Flask(__name__)
    app.config.update(get_config())
    if config:
        app.config.update(config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if supabase_client is None:
        supabase_client = db.get_supabase_client(app.config["SUPABASE_URL"], app.config["SUPABASE_KEY"])
    app.extensions["supabase"] = supabase_client
    app.extensions["llm_session"] = llm_session or requests.Session()

    _register_error_handlers(app)
    _register_report_routes(app)
    _register_expense_routes(app)
    _register_category_routes(app)
    _register_cli(app)
    logger.debug("Aplicação configurada (locale %s)", app.config["APP_LOCALE"])
    return app


# --- Helpers de requisição ---
def _supabase():
    return current_app.extensions["supabase"]


def _locale() -> Locale:
    return get_locale(current_app.config["APP_LOCALE"])


def _current_user_id() -> str:
    auth_header = request.headers.get("Authorization", "")
    token = auth_header[len("Bearer "):].strip() if auth_header.startswith("Bearer ") else None
    return db.get_user_id(_supabase(), token)


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _month_expenses(user_id: str, month: int, year: int) -> List[ExpenseRecord]:
    start, end = month_range(month, year)
    return db.get_expenses(_supabase(), user_id, start, end)


def _parse_amount(value) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidRequest("Valor inválido")
    if not math.isfinite(amount) or amount < 0:
        raise InvalidRequest("Valor inválido")
    return amount


def _parse_date(value) -> datetime.datetime:
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        raise InvalidRequest("Data inválida")


def _accessible_category(user_id: str, category_id: str) -> Category:
    """Categoria que o usuário pode usar em um gasto: padrão ou dele."""
    category = db.get_category(_supabase(), category_id)
    if not category:
        raise NotFound("Categoria não encontrada")
    if not category.is_default and category.user_id != user_id:
        raise Forbidden()
    return category


def _owned_expense(user_id: str, expense_id: str) -> ExpenseRecord:
    expense = db.get_expense(_supabase(), expense_id)
    if not expense or expense.user_id != user_id:
        raise NotFound("Gasto não encontrado")
    return expense


def _editable_category(user_id: str, category_id: str, verb: str) -> Category:
    category = db.get_category(_supabase(), category_id)
    if not category:
        raise NotFound("Categoria não encontrada")
    if category.is_default:
        raise Forbidden(f"Não é possível {verb} categorias padrão")
    if category.user_id != user_id:
        raise Forbidden()
    return category


# --- Erros ---
def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(OrcamentoError)
    def handle_app_error(error: OrcamentoError):
        logger.info("%s: %s", type(error).__name__, error.message)
        return jsonify({"error": error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.exception("Erro inesperado ao processar %s %s", request.method, request.path)
        return jsonify({"error": "Erro interno do servidor"}), 500


# --- Relatórios ---
def _report_response(action: Union[str, None]):
    body = _json_body()
    user_id = _current_user_id()
    month, year = parse_month_year(body.get("month"), body.get("year"))
    if action not in REPORT_ACTIONS:
        raise InvalidRequest("Ação inválida")

    locale = _locale()
    records = _month_expenses(user_id, month, year)
    # Falha aqui (NoDataError) antes de gerar qualquer formato
    summary = aggregate_expenses(records, locale.fallback_category)

    if action == "csv":
        return Response(
            render_csv(records, locale),
            content_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{csv_filename(month, year)}"'},
        )

    if action == "ai":
        prompt = ai.build_analysis_prompt(summary, locale)
        upstream = ai.open_completion_stream(
            prompt, current_app.config, session=current_app.extensions["llm_session"]
        )
        return Response(
            ai.UpstreamRelay(upstream),
            content_type="text/plain; charset=utf-8",
            headers={"Cache-Control": "no-cache"},
        )

    return jsonify({"html": render_report_html(summary, records, month, year, locale)})


def _register_report_routes(app: Flask) -> None:
    @app.route("/api/reports", methods=["POST"])
    def reports():
        return _report_response(_json_body().get("action"))

    @app.route("/api/export-excel", methods=["POST"])
    def export_excel():
        return _report_response("csv")

    @app.route("/api/export-pdf", methods=["POST"])
    def export_pdf():
        return _report_response("html")

    @app.route("/api/ai-analysis", methods=["POST"])
    def ai_analysis():
        return _report_response("ai")

    @app.route("/api/summary", methods=["GET"])
    def summary():
        user_id = _current_user_id()
        month, year = parse_month_year(request.args.get("month"), request.args.get("year"))
        records = _month_expenses(user_id, month, year)
        if not records:
            return jsonify({"total": 0, "count": 0, "categories": []})
        return jsonify(aggregate_expenses(records, _locale().fallback_category).to_dict())

    @app.route("/api/charts/<kind>", methods=["GET"])
    def chart(kind: str):
        if kind not in ("categories", "daily"):
            raise NotFound("Gráfico não encontrado")
        user_id = _current_user_id()
        month, year = parse_month_year(request.args.get("month"), request.args.get("year"))
        locale = _locale()
        records = _month_expenses(user_id, month, year)
        if not records:
            raise NoDataError()
        if kind == "categories":
            buf = charts.generate_category_pie_chart(
                aggregate_expenses(records, locale.fallback_category), locale
            )
        else:
            buf = charts.generate_daily_spending_chart(records, locale)
        return send_file(buf, mimetype="image/png", download_name=f"{kind}_{month}_{year}.png")


# --- Gastos ---
def _register_expense_routes(app: Flask) -> None:
    @app.route("/api/expenses", methods=["GET"])
    def list_expenses():
        user_id = _current_user_id()
        start = request.args.get("startDate")
        end = request.args.get("endDate")
        expenses = db.get_expenses(
            _supabase(),
            user_id,
            _parse_date(start) if start and end else None,
            _parse_date(end) if start and end else None,
            request.args.get("categoryId"),
        )
        return jsonify([expense.to_dict() for expense in expenses])

    @app.route("/api/expenses", methods=["POST"])
    def create_expense():
        user_id = _current_user_id()
        body = _json_body()
        if not body.get("amount") or not body.get("description") or not body.get("categoryId"):
            raise InvalidRequest("Todos os campos são obrigatórios")
        amount = _parse_amount(body["amount"])
        category = _accessible_category(user_id, body["categoryId"])
        date = _parse_date(body["date"]) if body.get("date") else datetime.datetime.now()
        expense = db.add_expense(_supabase(), user_id, amount, body["description"], category.id, date)
        return jsonify(expense.to_dict()), 201

    @app.route("/api/expenses/<expense_id>", methods=["PUT"])
    def update_expense(expense_id: str):
        user_id = _current_user_id()
        body = _json_body()
        _owned_expense(user_id, expense_id)
        changes: Dict[str, Any] = {}
        if body.get("amount"):
            changes["amount"] = _parse_amount(body["amount"])
        if body.get("description") is not None:
            changes["description"] = body["description"]
        if body.get("categoryId") is not None:
            changes["category_id"] = _accessible_category(user_id, body["categoryId"]).id
        if body.get("date"):
            changes["date"] = _parse_date(body["date"]).isoformat()
        expense = db.update_expense(_supabase(), expense_id, changes)
        return jsonify(expense.to_dict())

    @app.route("/api/expenses/<expense_id>", methods=["DELETE"])
    def delete_expense(expense_id: str):
        user_id = _current_user_id()
        _owned_expense(user_id, expense_id)
        db.delete_expense(_supabase(), expense_id)
        return jsonify({"message": "Gasto excluído com sucesso"})


# --- Categorias ---
def _register_category_routes(app: Flask) -> None:
    @app.route("/api/categories", methods=["GET"])
    def list_categories():
        user_id = _current_user_id()
        return jsonify([category.to_dict() for category in db.get_categories(_supabase(), user_id)])

    @app.route("/api/categories", methods=["POST"])
    def create_category():
        user_id = _current_user_id()
        body = _json_body()
        if not body.get("name"):
            raise InvalidRequest("Nome da categoria é obrigatório")
        category = db.add_category(
            _supabase(),
            user_id,
            body["name"],
            body.get("color") or DEFAULT_CATEGORY_COLOR,
            body.get("icon") or DEFAULT_CATEGORY_ICON,
        )
        return jsonify(category.to_dict()), 201

    @app.route("/api/categories/<category_id>", methods=["PUT"])
    def update_category(category_id: str):
        user_id = _current_user_id()
        body = _json_body()
        _editable_category(user_id, category_id, "editar")
        changes = {key: body[key] for key in ("name", "color", "icon") if body.get(key) is not None}
        if not changes:
            raise InvalidRequest("Nenhum campo para atualizar")
        category = db.update_category(_supabase(), category_id, changes)
        return jsonify(category.to_dict())

    @app.route("/api/categories/<category_id>", methods=["DELETE"])
    def delete_category(category_id: str):
        user_id = _current_user_id()
        _editable_category(user_id, category_id, "excluir")
        if db.count_category_expenses(_supabase(), category_id) > 0:
            raise InvalidRequest("Não é possível excluir categoria com gastos associados")
        db.delete_category(_supabase(), category_id)
        return jsonify({"message": "Categoria excluída com sucesso"})


# --- CLI ---
def _register_cli(app: Flask) -> None:
    @app.cli.command("analise")
    @click.option("--user-id", required=True, help="Id do usuário no Supabase")
    @click.option("--month", type=int, required=True)
    @click.option("--year", type=int, required=True)
    def analise_command(user_id: str, month: int, year: int):
        """Gera a análise de IA dos gastos do mês e imprime o texto à medida que chega."""
        locale = _locale()
        try:
            records = _month_expenses(user_id, month, year)
            summary = aggregate_expenses(records, locale.fallback_category)
            upstream = ai.open_completion_stream(
                ai.build_analysis_prompt(summary, locale),
                current_app.config,
                session=current_app.extensions["llm_session"],
            )
        except OrcamentoError as e:
            raise click.ClickException(e.message)
        relay = ai.UpstreamRelay(upstream)
        try:
            for delta in iter_deltas(relay):
                click.echo(delta, nl=False)
        finally:
            relay.close()
        click.echo()

    @app.cli.command("seed")
    @click.option("--user-id", default=None, help="Cria também gastos de exemplo para este usuário")
    def seed_command(user_id: Union[str, None]):
        """Cria as categorias padrão e, opcionalmente, gastos de exemplo."""
        created = db.seed_default_categories(_supabase())
        for category in created:
            click.echo(f"Categoria criada: {category.name}")
        if user_id:
            for amount, description, category_name, date in SAMPLE_EXPENSES:
                db.add_expense(
                    _supabase(), user_id, amount, description, db.default_category_id(category_name), date
                )
            click.echo("Gastos de exemplo criados!")
        click.echo("Seed concluído com sucesso!")
