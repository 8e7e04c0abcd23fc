"""
Старый маршрут /AskChatGPT: промпт уходит напрямую в scoring endpoint.
Оставлен для совместимости с первой версией чат-интерфейса.
"""
from fastapi import APIRouter, Body, Depends
from typing import Optional

from schemas import ChatResponse
from services.chat_relay import ChatRelay
from routers.chat import get_chat_relay
from security import get_api_key

router = APIRouter(tags=["legacy"], dependencies=[Depends(get_api_key)])

@router.post("/AskChatGPT", response_model=ChatResponse, response_model_exclude_none=True)
async def ask_chatgpt(
    query: Optional[str] = Body(None),
    relay: ChatRelay = Depends(get_chat_relay),
):
    return await relay.ask_endpoint(query)
