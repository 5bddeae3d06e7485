# orcamento/config.py
import os
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw.isdigit() else default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


# Configurações do Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Configurações da API de IA (chat completions com streaming)
LLM_API_URL = os.getenv("LLM_API_URL", "https://apps.abacus.ai/v1/chat/completions")
LLM_API_KEY = os.getenv("LLM_API_KEY") or os.getenv("ABACUSAI_API_KEY")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4.1-mini")
LLM_MAX_TOKENS = _int_env("LLM_MAX_TOKENS", 1500)
LLM_CONNECT_TIMEOUT = _float_env("LLM_CONNECT_TIMEOUT", 10.0)
LLM_READ_TIMEOUT = _float_env("LLM_READ_TIMEOUT", 60.0)

# Idioma dos relatórios e da análise (pt-BR ou en-US)
APP_LOCALE = os.getenv("APP_LOCALE", "pt-BR")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Dict[str, Any]:
    """Retorna as configurações do processo como um dicionário para o app Flask."""
    return {
        "SUPABASE_URL": SUPABASE_URL,
        "SUPABASE_KEY": SUPABASE_KEY,
        "LLM_API_URL": LLM_API_URL,
        "LLM_API_KEY": LLM_API_KEY,
        "LLM_MODEL": LLM_MODEL,
        "LLM_MAX_TOKENS": LLM_MAX_TOKENS,
        "LLM_CONNECT_TIMEOUT": LLM_CONNECT_TIMEOUT,
        "LLM_READ_TIMEOUT": LLM_READ_TIMEOUT,
        "APP_LOCALE": APP_LOCALE,
        "LOG_LEVEL": LOG_LEVEL,
    }
