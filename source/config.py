"""
Конфигурационный файл для чат-ретранслятора.
Все значения читаются из окружения (и из .env, если он есть).
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


# Бэкенд: "agents" (треды и запуски) или "endpoint" (простой scoring endpoint)
CHAT_BACKEND = os.environ.get("CHAT_BACKEND", "agents").strip().lower()

# Провайдер агентов: "openai" (Assistants API) или "azure" (Azure AI Agents)
AGENTS_PROVIDER = os.environ.get("AGENTS_PROVIDER", "openai").strip().lower()

# OpenAI
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
OPENAI_ORG_ID = os.environ.get("OPENAI_ORG_ID", "")
OPENAI_MAX_RETRIES = int(os.environ.get("OPENAI_MAX_RETRIES", "0"))
OPENAI_TIMEOUT = float(os.environ.get("OPENAI_TIMEOUT", "60"))

# Azure AI Agents (аутентификация через DefaultAzureCredential / managed identity)
AZURE_AI_PROJECT_ENDPOINT = os.environ.get("AZURE_AI_PROJECT_ENDPOINT", "")

# Агент
AGENT_ID = os.environ.get("AGENT_ID", "")
DEFAULT_MODEL = os.environ.get("DEFAULT_MODEL", "")
AGENT_NAME = os.environ.get("AGENT_NAME", "Chatbot Agent")
AGENT_INSTRUCTIONS = os.environ.get("AGENT_INSTRUCTIONS", "You are a helpful Chatbot agent.")

# Поисковый grounding-инструмент (Bing), только для Azure AI Agents
BING_SEARCH_CONNECTION_ID = os.environ.get("BING_SEARCH_CONNECTION_ID", "")
BING_SEARCH_RESULTS_COUNT = int(os.environ.get("BING_SEARCH_RESULTS_COUNT", "5"))
BING_SEARCH_RESULTS_TIME_RANGE = os.environ.get("BING_SEARCH_RESULTS_TIME_RANGE", "7d")

# Опрос запуска
RUN_POLL_INTERVAL = float(os.environ.get("RUN_POLL_INTERVAL", "0.5"))  # секунды между опросами
RUN_TIMEOUT = float(os.environ.get("RUN_TIMEOUT", "120"))  # максимальное ожидание запуска
REPLY_MODE = os.environ.get("REPLY_MODE", "all").strip().lower()  # "all" или "last"

# Простой scoring endpoint
SCORING_ENDPOINT_URL = os.environ.get("SCORING_ENDPOINT_URL", "")
SCORING_API_KEY = os.environ.get("SCORING_API_KEY", "")
SCORING_DEPLOYMENT = os.environ.get("SCORING_DEPLOYMENT", "")  # заголовок azureml-model-deployment
SCORING_INPUT_FIELD = os.environ.get("SCORING_INPUT_FIELD", "chat_input")
SCORING_OUTPUT_FIELD = os.environ.get("SCORING_OUTPUT_FIELD", "chat_output")
SCORING_VERIFY_TLS = _bool("SCORING_VERIFY_TLS", "true")
SCORING_TIMEOUT = float(os.environ.get("SCORING_TIMEOUT", "60"))

# API безопасность (пустое значение отключает проверку X-API-Key)
API_TOKEN = os.environ.get("API_TOKEN", "")

# Подписанная cookie-сессия: по ней тред закрепляется за клиентом.
# Пустой ключ генерируется при старте, тогда сессии не переживают перезапуск.
SESSION_SECRET_KEY = os.environ.get("SESSION_SECRET_KEY", "")
SESSION_HTTPS_ONLY = _bool("SESSION_HTTPS_ONLY", "false")

# Хранилище владельцев тредов
DATA_DIR = os.environ.get("DATA_DIR", "data")
THREADS_FILENAME = os.environ.get("THREADS_FILENAME", "threads.json")

# Владелец треда забывается после стольких часов неактивности
INACTIVE_HOURS = int(os.environ.get("INACTIVE_HOURS", "24"))

# Настройки сервера
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8000"))


def validate() -> None:
    """Проверка обязательных настроек для выбранного бэкенда."""
    if CHAT_BACKEND not in ("agents", "endpoint"):
        raise RuntimeError(f"CHAT_BACKEND должен быть 'agents' или 'endpoint', получено: {CHAT_BACKEND!r}")
    if REPLY_MODE not in ("all", "last"):
        raise RuntimeError(f"REPLY_MODE должен быть 'all' или 'last', получено: {REPLY_MODE!r}")
    if RUN_POLL_INTERVAL <= 0 or RUN_TIMEOUT <= 0:
        raise RuntimeError("RUN_POLL_INTERVAL и RUN_TIMEOUT должны быть положительными")
    if CHAT_BACKEND == "agents":
        if AGENTS_PROVIDER not in ("openai", "azure"):
            raise RuntimeError(f"AGENTS_PROVIDER должен быть 'openai' или 'azure', получено: {AGENTS_PROVIDER!r}")
        if AGENTS_PROVIDER == "openai" and not OPENAI_API_KEY:
            raise RuntimeError("OPENAI_API_KEY environment variable not set")
        if AGENTS_PROVIDER == "azure" and not AZURE_AI_PROJECT_ENDPOINT:
            raise RuntimeError("AZURE_AI_PROJECT_ENDPOINT environment variable not set")
        if AGENTS_PROVIDER == "openai" and BING_SEARCH_CONNECTION_ID:
            raise RuntimeError("BING_SEARCH_CONNECTION_ID поддерживается только с AGENTS_PROVIDER=azure")
        if not AGENT_ID and not DEFAULT_MODEL:
            raise RuntimeError("Нужно задать AGENT_ID или DEFAULT_MODEL")
    if CHAT_BACKEND == "endpoint" and not SCORING_ENDPOINT_URL:
        raise RuntimeError("SCORING_ENDPOINT_URL environment variable not set")
