"""
Клиент простого scoring endpoint (онлайн-эндпоинт модели).
Один POST: промпт уходит в поле SCORING_INPUT_FIELD, ответ читается из SCORING_OUTPUT_FIELD.
"""
import logging
from typing import Optional

import requests

import config
from errors import BackendError, BackendUnavailable

logger = logging.getLogger(__name__)

class ScoringEndpointService:
    """Класс для работы со scoring endpoint."""
    def __init__(self, url: str = None, api_key: Optional[str] = None, deployment: Optional[str] = None,
                 input_field: str = None, output_field: str = None,
                 verify_tls: bool = None, timeout: float = None,
                 session: Optional[requests.Session] = None):
        self.url = url or config.SCORING_ENDPOINT_URL
        self.api_key = api_key if api_key is not None else config.SCORING_API_KEY
        self.deployment = deployment if deployment is not None else config.SCORING_DEPLOYMENT
        self.input_field = input_field or config.SCORING_INPUT_FIELD
        self.output_field = output_field or config.SCORING_OUTPUT_FIELD
        self.verify_tls = config.SCORING_VERIFY_TLS if verify_tls is None else verify_tls
        self.timeout = timeout or config.SCORING_TIMEOUT
        self.session = session or requests.Session()
        if not self.verify_tls:
            logger.warning("Проверка TLS-сертификата scoring endpoint отключена")
    def _headers(self):
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.deployment:
            headers["azureml-model-deployment"] = self.deployment
        return headers
    def score(self, prompt: str) -> str:
        """Блокирующий вызов; из async-кода его запускают в пуле потоков."""
        logger.debug(f"Запрос к scoring endpoint: {prompt}")
        try:
            response = self.session.post(
                self.url,
                json={self.input_field: prompt},
                headers=self._headers(),
                verify=self.verify_tls,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Scoring endpoint недоступен: {e}")
            raise BackendUnavailable(f"Scoring endpoint недоступен: {e}") from e
        if not response.ok:
            logger.error(f"The request failed with status code: {response.status_code}")
            logger.info(f"Заголовки ответа: {dict(response.headers)}")
            logger.info(response.text)
            raise BackendError(response.status_code, response.text, dict(response.headers))
        try:
            answer = response.json()[self.output_field]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"В ответе scoring endpoint нет поля {self.output_field}: {e}")
            raise BackendError(response.status_code, response.text, dict(response.headers)) from e
        logger.debug(f"Ответ scoring endpoint: {answer}")
        return "" if answer is None else str(answer)
