import json
import logging
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone
from chat_core.config.settings import settings


LOG_FILE_NAME = "chat.log"


class JsonFormatter(logging.Formatter):
    """每条记录一行 JSON；`extra={"extra": {...}}` 中的字段并入顶层。"""

    def __init__(self, redact_content: bool = False):
        super().__init__()
        self.redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self.redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(name: str = "chat_core", log_dir: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    level = getattr(logging, str(settings.log_level).upper(), logging.INFO)
    logger.setLevel(level)
    # 日志只进文件，不干扰终端里的对话输出
    logger.propagate = False
    if logger.handlers:
        return logger
    target = Path(log_dir or settings.log_dir)
    target.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(target / LOG_FILE_NAME, encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(JsonFormatter(redact_content=settings.log_redact_content))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
