"""Groq Provider 适配器。

使用 OpenAI 兼容的 chat/completions 端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

本实现只依赖公共字段：model/messages/stream。
非流式返回 CompleteResponse；流式返回 StreamedResponse，
其中的原始字节块交给 streaming.decoder 解析。
"""

import time
from contextlib import ExitStack
from typing import Any, Dict, Iterator, Optional

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import (
    HttpError,
    MalformedResponseError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from chat_core.domain.models import (
    ChatRequest,
    ChatUsage,
    CompleteResponse,
    ResponseHandle,
    StreamedResponse,
)
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.registry import GROQ_CONFIG


class GroqClient:
    """Groq Provider 客户端实现。"""

    name = "groq"

    def __init__(self, cfg=settings, api_key: Optional[str] = None):
        self._settings = cfg
        # 显式传入的 key 优先（来自 credentials.ensure_api_key）
        self._api_key = api_key or getattr(cfg, "groq_api_key", None)

    def send(self, req: ChatRequest) -> ResponseHandle:
        if not self._api_key:
            raise ValidationError(code="MISSING_API_KEY", message="GROQ_API_KEY not set")
        payload = req.to_payload(getattr(self._settings, "system_prompt", None))
        if req.stream:
            return self._send_stream(payload)
        return self._send_complete(payload)

    # ---- 非流式 ----

    def _send_complete(self, payload: Dict[str, Any]) -> CompleteResponse:
        try:
            with self._client() as client:
                attempt = 0
                while True:
                    resp = client.post(self._url, json=payload, headers=self._headers())
                    if resp.status_code == 429 and attempt < self._max_retries:
                        attempt += 1
                        self._backoff(attempt)
                        continue
                    break
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        self._raise_for_status(resp.status_code, resp.text)
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError(code="MALFORMED_RESPONSE", message=f"Invalid JSON body: {e}")
        return self._parse_response(data)

    # ---- 流式 ----

    def _send_stream(self, payload: Dict[str, Any]) -> StreamedResponse:
        stack = ExitStack()
        try:
            client = stack.enter_context(self._client())
            attempt = 0
            while True:
                attempt_stack = ExitStack()
                resp = attempt_stack.enter_context(
                    client.stream("POST", self._url, json=payload, headers=self._headers())
                )
                if resp.status_code == 429 and attempt < self._max_retries:
                    attempt_stack.close()
                    attempt += 1
                    self._backoff(attempt)
                    continue
                stack.enter_context(attempt_stack)
                break
            if not 200 <= resp.status_code < 300:
                resp.read()
                self._raise_for_status(resp.status_code, resp.text)
            return StreamedResponse(self._iter_chunks(resp), close=stack.close)
        except httpx.RequestError as e:
            stack.close()
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        except BaseException:
            stack.close()
            raise

    @staticmethod
    def _iter_chunks(resp) -> Iterator[bytes]:
        """逐块读取响应体，中途断开统一转换为 NetworkError。"""

        try:
            for chunk in resp.iter_bytes():
                if chunk:
                    yield chunk
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)

    # ---- 辅助方法 ----

    @property
    def _url(self) -> str:
        return GROQ_CONFIG.chat_url(getattr(self._settings, "groq_base_url", None) or "")

    @property
    def _max_retries(self) -> int:
        return int(getattr(self._settings, "max_retries", 3))

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._settings.http_timeout, trust_env=False)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _backoff(self, attempt: int) -> None:
        delay = float(getattr(self._settings, "retry_delay", 2.0))
        logger.warning(
            "Rate limit hit, retrying",
            extra={"extra": {"provider": self.name, "attempt": attempt, "delay": delay}},
        )
        if delay > 0:
            time.sleep(delay)

    @staticmethod
    def _raise_for_status(status: int, body: str) -> None:
        if 200 <= status < 300:
            return
        if status == 429:
            raise RateLimitError(body=body)
        raise HttpError(status=status, body=body)

    def _parse_response(self, data: Any) -> CompleteResponse:
        if not isinstance(data, dict):
            raise MalformedResponseError(code="MALFORMED_RESPONSE", message="Response body is not an object")
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise MalformedResponseError(code="MALFORMED_RESPONSE", message="Response contains no choices")
        first = choices[0]
        msg = first.get("message") if isinstance(first, dict) else None
        if not isinstance(msg, dict):
            raise MalformedResponseError(code="MALFORMED_RESPONSE", message="First choice has no message")
        content = msg.get("content") or ""
        if not isinstance(content, str):
            raise MalformedResponseError(code="MALFORMED_RESPONSE", message="Message content is not text")
        usage_raw = data.get("usage") or {}
        usage = None
        if isinstance(usage_raw, dict) and usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return CompleteResponse(content=content, usage=usage, raw=data)
