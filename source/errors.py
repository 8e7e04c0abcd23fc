"""
Ошибки чат-ретранслятора.
Сервисы бросают их, main.py превращает в HTTP-ответы.
"""
from typing import Dict, Optional


class RelayError(Exception):
    status_code = 500


class InvalidArgument(RelayError):
    status_code = 400


class ThreadNotFound(RelayError):
    status_code = 404

    def __init__(self, thread_id: str):
        super().__init__(f"Тред {thread_id} не найден")
        self.thread_id = thread_id


class BackendNotConfigured(RelayError):
    status_code = 503


class BackendError(RelayError):
    """Внешний API ответил неуспешным статусом; body отдаётся клиенту как есть."""
    status_code = 400

    def __init__(self, upstream_status: int, body: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(f"Внешний API вернул статус {upstream_status}")
        self.upstream_status = upstream_status
        self.body = body
        self.headers = headers or {}


class BackendUnavailable(RelayError):
    status_code = 502


class RunFailed(RelayError):
    status_code = 502

    def __init__(self, run_id: str, status: str, reason: Optional[str] = None):
        message = f"Запуск {run_id} завершился со статусом {status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.run_id = run_id
        self.status = status
        self.reason = reason


class RunTimeout(RelayError):
    status_code = 504

    def __init__(self, run_id: str, waited: float):
        super().__init__(f"Запуск {run_id} не завершился за {waited:.1f} с")
        self.run_id = run_id
        self.waited = waited


class RunAborted(RelayError):
    # клиент закрыл соединение, nginx-код
    status_code = 499

    def __init__(self, run_id: str):
        super().__init__(f"Запуск {run_id} прерван: клиент отключился")
        self.run_id = run_id
