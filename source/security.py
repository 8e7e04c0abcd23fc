"""
Модуль безопасности для чат-ретранслятора.
Проверяет токен API (если он задан) и определяет, кто вызывает сервис.
Идентичность выдаёт сервер: случайный id в подписанной cookie-сессии,
по нему тред привязывается к своему владельцу. Заголовкам и адресу
клиента не доверяем.
"""
import logging
import uuid
from typing import Optional

from fastapi import Request, Security, HTTPException
from fastapi.security.api_key import APIKeyHeader
from starlette.status import HTTP_403_FORBIDDEN

import config

logger = logging.getLogger(__name__)

SESSION_CALLER_KEY = "caller_id"

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

async def get_api_key(api_key_header: Optional[str] = Security(api_key_header)):
    if not config.API_TOKEN:
        return None
    if api_key_header is None:
        logger.warning("Отсутствует заголовок X-API-Key")
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Отсутствует заголовок X-API-Key")
    if api_key_header != config.API_TOKEN:
        logger.warning("Невалидный API-ключ")
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Невалидный API-ключ")
    return api_key_header

async def get_caller(request: Request) -> str:
    """Id вызывающего из сессии; новый клиент получает свежий id."""
    caller = request.session.get(SESSION_CALLER_KEY)
    if not caller:
        caller = uuid.uuid4().hex
        request.session[SESSION_CALLER_KEY] = caller
        logger.debug("Выдан новый id клиента")
    return caller
