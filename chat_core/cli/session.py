"""会话循环。

一轮对话的数据流是单向的：

    输入 → 命令分发 → 构造请求 → Transport → 解码 → 更新历史 → 渲染

用户消息在发请求之前就写入历史，之后无论失败与否都保留。
只要拿到了响应句柄（开始渲染），就一定追加且只追加一条 assistant 消息，
内容为已经收到的全部文本：正常结束、网络中断、解码失败或用户 Ctrl-C
都一样，部分内容不会丢失。
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from chat_core.cli.commands import Action, CommandDispatcher
from chat_core.cli.ui import ConsoleUI
from chat_core.domain.conversation import ConversationState
from chat_core.domain.exceptions import BusinessError, DecodeError
from chat_core.domain.models import ChatRequest, CompleteResponse, ResponseHandle
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import Transport
from chat_core.streaming.decoder import StreamDecoder


class SessionState(str, Enum):
    AWAITING_INPUT = "awaiting_input"
    DISPATCHING = "dispatching"
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    RENDERING = "rendering"
    TERMINATED = "terminated"


@dataclass
class TurnOutcome:
    """一轮对话的结果。

    - content: 已提交到历史的 assistant 文本（committed=False 时为空）。
    - committed: 是否追加了 assistant 消息。
    - error: 本轮报告给用户的错误（如果有）。
    - interrupted: 是否被用户中断。
    - skipped_events: 流式解码中跳过的损坏事件数。
    """

    content: str = ""
    committed: bool = False
    error: Optional[BusinessError] = None
    interrupted: bool = False
    skipped_events: int = 0


class SessionLoop:
    def __init__(
        self,
        state: ConversationState,
        transport: Transport,
        ui: ConsoleUI,
        dispatcher: Optional[CommandDispatcher] = None,
    ):
        self._state = state
        self._transport = transport
        self._ui = ui
        self._dispatcher = dispatcher or CommandDispatcher(state, ui)
        self.status = SessionState.AWAITING_INPUT

    @property
    def conversation(self) -> ConversationState:
        return self._state

    def run(self) -> None:
        """读取输入直到 /quit、EOF 或在提示符处按下 Ctrl-C。"""

        while self.status is not SessionState.TERMINATED:
            self.status = SessionState.AWAITING_INPUT
            try:
                line = self._ui.read_line()
            except (EOFError, KeyboardInterrupt):
                self._ui.console.print()
                self._ui.farewell()
                self.status = SessionState.TERMINATED
                break
            try:
                self.step(line)
            except (EOFError, KeyboardInterrupt):
                # /model 的选择提示处输入结束或按下 Ctrl-C
                self._ui.console.print()
                self._ui.farewell()
                self.status = SessionState.TERMINATED

    def step(self, line: str) -> bool:
        """处理一行输入，返回会话是否仍在继续。"""

        self.status = SessionState.DISPATCHING
        result = self._dispatcher.dispatch(line)
        if result.action is Action.QUIT:
            self.status = SessionState.TERMINATED
            return False
        if result.action is Action.TURN:
            self.run_turn(result.content)
        else:
            self.status = SessionState.IDLE
        self.status = SessionState.AWAITING_INPUT
        return True

    def run_turn(self, content: str) -> TurnOutcome:
        """执行一轮对话，返回提交到历史的结果。"""

        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "model": self._state.model,
            "stream": self._state.streaming_enabled,
        }

        self.status = SessionState.AWAITING_RESPONSE
        self._state.append("user", content)
        req = ChatRequest(
            model=self._state.model,
            messages=self._state.snapshot(),
            stream=self._state.streaming_enabled,
        )
        self._log(logging.INFO, "Sending request", log_ctx, message_count=len(req.messages))
        if not req.stream:
            self._ui.thinking()

        outcome = TurnOutcome()
        try:
            handle = self._transport.send(req)
        except BusinessError as e:
            outcome.error = e
            self._report_failure(outcome, log_ctx)
            return outcome
        except KeyboardInterrupt:
            outcome.interrupted = True
            self._report_failure(outcome, log_ctx)
            return outcome

        self.status = SessionState.RENDERING
        pieces: List[str] = []
        try:
            self._render(handle, pieces, outcome, log_ctx)
        except BusinessError as e:
            outcome.error = e
        except KeyboardInterrupt:
            outcome.interrupted = True
        finally:
            outcome.content = "".join(pieces)
            self._state.append("assistant", outcome.content)
            outcome.committed = True

        if outcome.error is not None or outcome.interrupted:
            self._report_failure(outcome, log_ctx)
        self._log(
            logging.INFO,
            "Completed turn",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            content_length=len(outcome.content),
            skipped_events=outcome.skipped_events,
        )
        return outcome

    def _render(
        self,
        handle: ResponseHandle,
        pieces: List[str],
        outcome: TurnOutcome,
        log_ctx: Dict[str, Any],
    ) -> None:
        if isinstance(handle, CompleteResponse):
            pieces.append(handle.content)
            if handle.usage:
                self._log(
                    logging.INFO,
                    "Token usage",
                    log_ctx,
                    prompt_tokens=handle.usage.prompt_tokens,
                    completion_tokens=handle.usage.completion_tokens,
                    total_tokens=handle.usage.total_tokens,
                )
            self._ui.reply(handle.content)
            return

        decoder = StreamDecoder(handle)
        with handle:
            self._ui.begin_stream()
            decode_failed = False
            try:
                for delta in decoder:
                    pieces.append(delta.text)
                    self._ui.stream_fragment(delta.text)
            except DecodeError:
                decode_failed = True
                raise
            finally:
                self._ui.end_stream()
                outcome.skipped_events = decoder.stats.skipped
                # DecodeError 自带跳过数量，不再重复提示
                if decoder.stats.skipped and not decode_failed:
                    self._ui.notice(f"Skipped {decoder.stats.skipped} malformed stream event(s)")

    def _report_failure(self, outcome: TurnOutcome, log_ctx: Dict[str, Any]) -> None:
        if outcome.interrupted:
            self._log(logging.WARNING, "Turn interrupted", log_ctx, committed=outcome.committed)
            self._ui.error("Interrupted")
            return
        err = outcome.error
        fields: Dict[str, Any] = {"code": err.code, "committed": outcome.committed}
        status = getattr(err, "status", None)
        if status is not None:
            fields["status"] = status
        self._log(logging.ERROR, "Turn failed", log_ctx, error=err.message, **fields)
        self._ui.error(err.message)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
