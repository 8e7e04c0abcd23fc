"""
Схемы данных для чат-ретранслятора.
"""
from pydantic import BaseModel
from typing import Optional

class ChatResponse(BaseModel):
    success: bool
    data: Optional[str] = None
    error: Optional[str] = None
    thread_id: Optional[str] = None

class ThreadResponse(BaseModel):
    id: str

class HealthResponse(BaseModel):
    ok: bool
    backend: str
