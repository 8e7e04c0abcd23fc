"""
Основной файл чат-ретранслятора.
Принимает промпты от чат-интерфейса и пересылает их внешнему AI-бэкенду.
"""
import json
import logging
import secrets
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.middleware.sessions import SessionMiddleware

import config
from errors import BackendError, RelayError
from routers import chat
from routers import legacy
from schemas import HealthResponse
from storage.file_storage import FileStorage
from storage.thread_manager import ThreadManager
from services.agents_svc import AgentService
from services.azure_agents_svc import AzureAgentService, build_grounding_tool
from services.chat_relay import ChatRelay
from services.endpoint_svc import ScoringEndpointService

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Chat Relay",
    description="Ретранслятор промптов чат-интерфейса во внешний AI-сервис",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

session_secret = config.SESSION_SECRET_KEY
if not session_secret:
    logger.warning("SESSION_SECRET_KEY не задан, ключ сессий сгенерирован на время работы процесса")
    session_secret = secrets.token_urlsafe(32)
app.add_middleware(
    SessionMiddleware,
    secret_key=session_secret,
    session_cookie="chat_relay_session",
    same_site="lax",
    https_only=config.SESSION_HTTPS_ONLY,
)

file_storage = FileStorage(data_dir=config.DATA_DIR, filename=config.THREADS_FILENAME)

def build_agent_service():
    if config.CHAT_BACKEND != "agents":
        return None
    if config.AGENTS_PROVIDER == "azure":
        return AzureAgentService()
    return AgentService()

def build_agent_tools():
    # grounding есть только у Azure AI Agents
    if config.CHAT_BACKEND != "agents" or config.AGENTS_PROVIDER != "azure":
        return []
    return build_grounding_tool()

agent_service = build_agent_service()
endpoint_service = ScoringEndpointService() if config.SCORING_ENDPOINT_URL else None
thread_manager = ThreadManager(
    storage=file_storage,
    agent_service=agent_service,
    inactive_hours=config.INACTIVE_HOURS,
)

chat_relay = ChatRelay(
    backend=config.CHAT_BACKEND,
    thread_manager=thread_manager,
    agent_service=agent_service,
    endpoint_service=endpoint_service,
    agent_id=config.AGENT_ID,
    model=config.DEFAULT_MODEL,
    agent_name=config.AGENT_NAME,
    instructions=config.AGENT_INSTRUCTIONS,
    tools=build_agent_tools(),
    poll_interval=config.RUN_POLL_INTERVAL,
    timeout=config.RUN_TIMEOUT,
    reply_mode=config.REPLY_MODE,
)

app.include_router(chat.router)
app.include_router(legacy.router)

@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    # тело ответа внешнего API отдаём как есть, заголовки только в лог
    logger.info(f"Заголовки ответа внешнего API: {exc.headers}")
    content_type = next(
        (v for k, v in exc.headers.items() if k.lower() == "content-type"),
        None,
    )
    if content_type is None:
        try:
            json.loads(exc.body)
            content_type = "application/json"
        except ValueError:
            content_type = "text/plain"
    return Response(content=exc.body, status_code=exc.status_code, media_type=content_type)

@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc)},
    )

@app.on_event("startup")
async def startup_event():
    config.validate()
    logger.info(f"Запуск чат-ретранслятора, бэкенд: {config.CHAT_BACKEND}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Остановка чат-ретранслятора")
    file_storage.save()
    if agent_service is not None:
        await agent_service.aclose()

@app.get("/")
async def root():
    return {"message": "Chat Relay API", "version": app.version}

@app.get("/health", response_model=HealthResponse)
async def health():
    return {"ok": True, "backend": config.CHAT_BACKEND}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
    )
