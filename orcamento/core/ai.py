# orcamento/core/ai.py
import logging
from typing import Any, Dict, Iterator, Mapping, Union

import requests

from orcamento.core.errors import RelayInterrupted, UpstreamError
from orcamento.core.models import ExpenseSummary
from orcamento.utils.text_utils import Locale, format_amount

logger = logging.getLogger(__name__)


def build_analysis_prompt(summary: ExpenseSummary, locale: Locale) -> str:
    """Monta o prompt de análise dos gastos do mês a partir do resumo por categoria."""
    labels = locale.labels
    lines = [
        f"- {aggregate.name}: {locale.currency_symbol} {format_amount(aggregate.total)} "
        f"({aggregate.percentage:.1f}% {labels['of_total']}, {aggregate.count} {labels['expenses']})"
        for aggregate in summary.categories
    ]
    return locale.prompt_template.format(
        currency=locale.currency_symbol,
        total=format_amount(summary.grand_total),
        count=summary.count,
        categories="\n".join(lines),
        language=locale.language_name,
    )


def build_completion_payload(prompt: str, model: str, max_tokens: int) -> Dict[str, Any]:
    return {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "stream": True,
        "max_tokens": max_tokens,
    }


def open_completion_stream(
    prompt: str,
    config: Mapping[str, Any],
    session: Union[requests.Session, None] = None,
) -> requests.Response:
    """
    Abre a requisição de chat completion com streaming.

    Falhas de conexão ou status diferente de 2xx viram UpstreamError aqui,
    antes de qualquer byte ser enviado ao cliente.
    """
    if not config.get("LLM_API_KEY"):
        logger.error("LLM_API_KEY não configurada")
        raise UpstreamError()
    http = session or requests
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config['LLM_API_KEY']}",
    }
    payload = build_completion_payload(prompt, config["LLM_MODEL"], config["LLM_MAX_TOKENS"])
    try:
        response = http.post(
            config["LLM_API_URL"],
            headers=headers,
            json=payload,
            stream=True,
            timeout=(config["LLM_CONNECT_TIMEOUT"], config["LLM_READ_TIMEOUT"]),
        )
    except requests.exceptions.RequestException as e:
        logger.error("Erro ao conectar com a API de IA: %s", e)
        raise UpstreamError() from e

    if not response.ok:
        logger.error("API de IA respondeu com status %s", response.status_code)
        response.close()
        raise UpstreamError()
    return response


class UpstreamRelay:
    """
    Repassa os bytes da resposta da API de IA para o cliente, na ordem em que chegam.

    É o iterável entregue ao Flask: o servidor WSGI chama close() ao terminar a
    resposta ou quando o cliente desconecta, mesmo que a iteração nem tenha começado.
    A resposta upstream é fechada uma única vez.
    """

    def __init__(self, upstream: requests.Response, chunk_size: Union[int, None] = None):
        self._upstream = upstream
        self._chunk_size = chunk_size
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        try:
            for chunk in self._upstream.iter_content(chunk_size=self._chunk_size):
                if chunk:
                    yield chunk
        except (requests.exceptions.RequestException, OSError) as e:
            logger.error("Erro no stream da análise: %s", e)
            raise RelayInterrupted() from e
        finally:
            self.close()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._upstream.close()
