# orcamento/core/stream_reader.py
"""
Leitura do stream da análise de IA (formato server-sent events).

O stream é uma sequência de linhas; as que começam com "data: " trazem um JSON
com o trecho incremental do texto ou o sentinela "[DONE]". Linhas que não são
JSON válido são ignoradas.
"""
import codecs
import json
import logging
from typing import Iterable, Iterator, Union

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def _iter_lines(chunks: Iterable[Union[bytes, str]]) -> Iterator[str]:
    # Uma linha (ou um caractere UTF-8) pode vir partida entre dois chunks
    decoder = codecs.getincrementaldecoder("utf-8")()
    buffer = ""
    for chunk in chunks:
        buffer += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        *lines, buffer = buffer.split("\n")
        for line in lines:
            yield line.rstrip("\r")
    buffer += decoder.decode(b"", final=True)
    if buffer:
        yield buffer.rstrip("\r")


def iter_events(chunks: Iterable[Union[bytes, str]]) -> Iterator[str]:
    """Devolve o conteúdo de cada linha "data: ", parando no sentinela [DONE]."""
    for line in _iter_lines(chunks):
        if not line.startswith(DATA_PREFIX):
            continue
        data = line[len(DATA_PREFIX):]
        if data == DONE_SENTINEL:
            return
        yield data


def iter_deltas(chunks: Iterable[Union[bytes, str]]) -> Iterator[str]:
    """Devolve os trechos de texto (choices[0].delta.content) na ordem de chegada."""
    for data in iter_events(chunks):
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            logger.debug("Linha do stream ignorada (JSON inválido): %r", data)
            continue
        try:
            content = parsed["choices"][0]["delta"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            continue
        if content:
            yield content


def collect_text(chunks: Iterable[Union[bytes, str]]) -> str:
    return "".join(iter_deltas(chunks))
