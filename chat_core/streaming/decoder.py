"""流式响应解码器。

服务端以 SSE 风格返回若干行：

    data: {"choices":[{"delta":{"content":"Hi"}}]}
    data: [DONE]

网络读取得到的字节块边界与行边界无关：一块里可能有零行、多行，
或者只有半行。StreamDecoder 维护一个字节缓冲区，只处理已经完整的行，
剩余部分留到下一块。解析出的文本增量按到达顺序逐个产出。

单行 JSON 损坏只会被跳过并计数，不会中断整个流；
如果直到流结束都没有任何一行可以解析，则在迭代结束时抛出 DecodeError。
"""

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional

from chat_core.domain.exceptions import DecodeError
from chat_core.domain.models import Delta
from chat_core.infrastructure.logging.logger import logger


DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


@dataclass
class DecodeStats:
    """一次解码过程的统计。

    - events: 成功解析的 JSON 事件数（不含 [DONE]）。
    - skipped: 因 JSON 损坏等原因跳过的事件数。
    - done: 是否收到了 [DONE]。
    - warnings: 被跳过事件的说明，供上层展示或记录。
    """

    events: int = 0
    skipped: int = 0
    done: bool = False
    warnings: List[str] = field(default_factory=list)


class StreamDecoder:
    """把原始字节块解码为有序的 Delta 序列。

    迭代器只能消费一次，不可重置。也可以用 feed()/finish()
    手动推送字节块。
    """

    def __init__(self, chunks: Optional[Iterable[bytes]] = None):
        self._chunks = chunks
        self._buffer = bytearray()
        self._iterated = False
        self.stats = DecodeStats()

    @property
    def done(self) -> bool:
        return self.stats.done

    def __iter__(self) -> Iterator[Delta]:
        if self._chunks is None:
            raise RuntimeError("StreamDecoder has no chunk source")
        if self._iterated:
            raise RuntimeError("StreamDecoder can only be iterated once")
        self._iterated = True
        return self._decode()

    def _decode(self) -> Iterator[Delta]:
        for chunk in self._chunks:
            yield from self.feed(chunk)
            if self.stats.done:
                return
        yield from self.finish()

    def feed(self, chunk: bytes) -> List[Delta]:
        """追加一块字节并处理其中所有完整的行。"""

        if self.stats.done:
            return []
        self._buffer.extend(chunk)
        out: List[Delta] = []
        while not self.stats.done:
            idx = self._buffer.find(b"\n")
            if idx < 0:
                break
            raw = bytes(self._buffer[:idx])
            del self._buffer[: idx + 1]
            delta = self._process_line(raw)
            if delta is not None:
                out.append(delta)
        return out

    def finish(self) -> List[Delta]:
        """字节源结束：处理未以换行结尾的最后一行，并检查是否完全无法解析。"""

        out: List[Delta] = []
        if not self.stats.done and self._buffer:
            raw = bytes(self._buffer)
            self._buffer.clear()
            delta = self._process_line(raw)
            if delta is not None:
                out.append(delta)
        if self.stats.events == 0 and self.stats.skipped > 0:
            raise DecodeError(
                code="DECODE_ERROR",
                message=f"No parseable events in stream ({self.stats.skipped} malformed)",
                skipped=self.stats.skipped,
            )
        return out

    def _process_line(self, raw: bytes) -> Optional[Delta]:
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError:
            self._skip("invalid utf-8", raw.decode("utf-8", errors="replace"))
            return None
        if not line.strip() or not line.startswith(DATA_PREFIX):
            # 空行、注释（": keep-alive"）以及 event:/id: 等行
            return None
        data_str = line[len(DATA_PREFIX):].strip()
        if not data_str:
            return None
        if data_str == DONE_SENTINEL:
            self.stats.done = True
            return None
        try:
            payload = json.loads(data_str)
        except json.JSONDecodeError as e:
            self._skip(f"malformed json ({e.msg})", data_str)
            return None
        if not isinstance(payload, dict):
            self._skip("event is not an object", data_str)
            return None
        self.stats.events += 1
        text = self._extract_content(payload)
        if not text:
            return None
        return Delta(text=text)

    @staticmethod
    def _extract_content(payload: dict) -> str:
        # delta 中没有 content（角色声明、finish_reason、usage 等）视为空增量
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        delta: Any = first.get("delta")
        if not isinstance(delta, dict):
            return ""
        content = delta.get("content")
        return content if isinstance(content, str) else ""

    def _skip(self, reason: str, line: str) -> None:
        self.stats.skipped += 1
        self.stats.warnings.append(f"{reason}: {line[:80]}")
        logger.warning(
            "Skipped stream event",
            extra={"extra": {"reason": reason, "skipped": self.stats.skipped}},
        )
