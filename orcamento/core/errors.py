# orcamento/core/errors.py
"""Erros da aplicação. Cada erro carrega a mensagem e o status HTTP devolvidos ao cliente."""


class OrcamentoError(Exception):
    status_code = 500
    default_message = "Erro interno do servidor"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(OrcamentoError):
    status_code = 401
    default_message = "Não autorizado"


class InvalidRequest(OrcamentoError):
    status_code = 400
    default_message = "Requisição inválida"


class NoDataError(InvalidRequest):
    default_message = "Nenhum gasto encontrado para este mês"


class Forbidden(OrcamentoError):
    status_code = 403
    default_message = "Não autorizado"


class NotFound(OrcamentoError):
    status_code = 404
    default_message = "Registro não encontrado"


class UpstreamError(OrcamentoError):
    default_message = "Erro ao processar análise"


class RelayInterrupted(OrcamentoError):
    default_message = "Stream da análise interrompido"
