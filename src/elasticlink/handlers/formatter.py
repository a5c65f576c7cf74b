"""日志格式化模块.

将 ``logging.LogRecord`` 转换为可写入 Elasticsearch 的文档。
"""

import json
import logging
from datetime import date, datetime, timezone
from typing import Any

# LogRecord 的内置属性，其余属性视为通过 extra 传入的上下文
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", None, None)).keys()
) | {"message", "asctime"}

_SCALAR_TYPES = (str, int, float, bool, type(None))


def normalize_value(value: Any) -> Any:
    """将上下文值转换为可 JSON 序列化的结构.

    标量原样保留，日期时间转换为 ISO 8601 字符串，字典与序列递归处理，
    其余对象转换为字符串。
    """
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): normalize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [normalize_value(item) for item in value]
    return str(value)


class ElasticsearchFormatter(logging.Formatter):
    """Elasticsearch 文档格式化器.

    Args:
        index: 文档写入的索引名
    """

    DATETIME_FIELD = "datetime"

    def __init__(self, index: str, datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.index = index

    def format_document(self, record: logging.LogRecord) -> dict[str, Any]:
        """将日志记录转换为文档字典."""
        document: dict[str, Any] = {
            "message": record.getMessage(),
            "level": record.levelno,
            "level_name": record.levelname,
            "channel": record.name,
            self.DATETIME_FIELD: datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "context": {
                key: normalize_value(value)
                for key, value in vars(record).items()
                if key not in _RESERVED_ATTRS and not key.startswith("_")
            },
            "extra": {
                "module": record.module,
                "func_name": record.funcName,
                "line": record.lineno,
                "process": record.process,
                "thread": record.thread,
            },
        }
        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)
        return document

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self.format_document(record), default=str, ensure_ascii=False)


class KibanaCompatibleFormatter(ElasticsearchFormatter):
    """兼容 Kibana 的格式化器.

    将时间字段 ``datetime`` 重命名为 Kibana 时间序列视图默认使用的
    ``@timestamp``。
    """

    KIBANA_TIMESTAMP_FIELD = "@timestamp"

    def format_document(self, record: logging.LogRecord) -> dict[str, Any]:
        document = super().format_document(record)
        if self.DATETIME_FIELD in document:
            document[self.KIBANA_TIMESTAMP_FIELD] = document.pop(self.DATETIME_FIELD)
        return document
