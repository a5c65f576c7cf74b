"""Elasticsearch 日志处理器工具模块.

提供 LazyElasticsearchHandler 类，将日志记录写入 Elasticsearch。客户端在第一次
写入时才创建，避免在应用启动阶段就建立连接。

使用示例:
    import logging
    from elasticlink.connection import ElasticsearchConfig
    from elasticlink.handlers import build_log_handler

    config = ElasticsearchConfig(hosts=["http://es1:9200"], index="service-logs")
    logging.getLogger().addHandler(build_log_handler(config))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from elasticsearch import Elasticsearch
from elasticsearch.helpers import bulk

from ..connection import ElasticsearchConfig, RoundRobinClientFactory
from .exceptions import LogHandlerError
from .formatter import ElasticsearchFormatter, KibanaCompatibleFormatter
from .models import HandlerOptions

logger = logging.getLogger(__name__)

# 这些日志记录器的输出由写入过程本身产生，处理它们会形成回环
EXCLUDED_LOGGERS = ("elasticsearch", "elastic_transport", "elasticlink")

ClientProvider = Callable[[], Elasticsearch]


class LazyElasticsearchHandler(logging.Handler):
    """惰性初始化的 Elasticsearch 日志处理器.

    Args:
        client: Elasticsearch 客户端，或返回客户端的无参可调用对象
        options: 处理器选项，默认使用 HandlerOptions 的默认值
        enabled: 为 False 时丢弃所有日志
        formatter: 文档格式化器，默认使用 ElasticsearchFormatter；文档写入
            格式化器的 index，未使用 ElasticsearchFormatter 时写入 options.index
        level: 处理器日志级别
    """

    def __init__(
        self,
        client: Elasticsearch | ClientProvider,
        options: HandlerOptions | None = None,
        enabled: bool = True,
        formatter: ElasticsearchFormatter | None = None,
        level: int = logging.NOTSET,
    ):
        super().__init__(level)
        self.options = options or HandlerOptions()
        self.enabled = enabled
        self._client_provider = client
        self._client: Elasticsearch | None = None
        self._initializing = False
        self.setFormatter(formatter or ElasticsearchFormatter(self.options.index))

    @staticmethod
    def _is_excluded(record: logging.LogRecord) -> bool:
        return any(
            record.name == name or record.name.startswith(f"{name}.")
            for name in EXCLUDED_LOGGERS
        )

    def filter(self, record: logging.LogRecord):
        if self._is_excluded(record):
            return False
        return super().filter(record)

    def _get_client(self) -> Elasticsearch | None:
        """获取客户端，首次调用时完成初始化.

        初始化在处理器锁内完成，多个线程同时写入时客户端只创建一次。
        同一线程在初始化过程中再次进入（例如客户端创建过程中产生了日志）时
        返回 None。初始化失败时记录错误并返回 None，下一条日志会重新尝试。
        """
        if self._client is not None:
            return self._client

        with self.lock:
            if self._client is not None:
                return self._client
            if self._initializing:
                return None

            self._initializing = True
            try:
                provider = self._client_provider
                if isinstance(provider, Elasticsearch) or not callable(provider):
                    self._client = provider
                else:
                    self._client = provider()
            except Exception as e:
                logger.error(f"初始化 Elasticsearch 客户端失败: {e}")
                return None
            finally:
                self._initializing = False

            return self._client

    def get_formatter(self) -> ElasticsearchFormatter:
        """返回当前使用的文档格式化器."""
        return self.formatter

    @property
    def target_index(self) -> str:
        """文档写入的索引.

        使用 ElasticsearchFormatter 时以格式化器的索引为准，
        否则使用选项中的索引。
        """
        formatter = self.formatter
        if isinstance(formatter, ElasticsearchFormatter):
            return formatter.index
        return self.options.index

    def _to_document(self, record: logging.LogRecord) -> dict[str, Any]:
        formatter = self.formatter
        if isinstance(formatter, ElasticsearchFormatter):
            return formatter.format_document(record)
        return {"message": self.format(record)}

    def emit(self, record: logging.LogRecord) -> None:
        if not self.enabled:
            return

        client = self._get_client()
        if client is None:
            return

        try:
            client.index(
                index=self.target_index,
                document=self._to_document(record),
                op_type=self.options.op_type,
            )
        except Exception:
            if not self.options.ignore_error:
                self.handleError(record)

    def handle_batch(self, records: Iterable[logging.LogRecord]) -> int:
        """批量写入日志记录.

        Args:
            records: 日志记录序列

        Returns:
            成功写入的文档数量

        Raises:
            LogHandlerError: 写入失败且未开启 ignore_error 时抛出
        """
        if not self.enabled:
            return 0

        records = [
            record
            for record in records
            if not self._is_excluded(record) and record.levelno >= self.level
        ]
        if not records:
            return 0

        client = self._get_client()
        if client is None:
            return 0

        index = self.target_index
        actions = (
            {
                "_op_type": self.options.op_type,
                "_index": index,
                "_source": self._to_document(record),
            }
            for record in records
        )
        try:
            success, _ = bulk(client, actions)
        except Exception as e:
            if self.options.ignore_error:
                return 0
            raise LogHandlerError(f"批量写入日志到 Elasticsearch 失败: {e}") from e
        return success


def build_log_handler(
    config: ElasticsearchConfig,
    factory: RoundRobinClientFactory | None = None,
    level: int = logging.NOTSET,
    ignore_error: bool = False,
) -> LazyElasticsearchHandler:
    """根据集成配置创建日志处理器.

    客户端由工厂在第一次写入日志时创建，文档使用 Kibana 兼容格式。

    Args:
        config: Elasticsearch 集成配置
        factory: 客户端工厂，默认新建 RoundRobinClientFactory
        level: 处理器日志级别
        ignore_error: 写入失败时是否静默忽略

    Returns:
        LazyElasticsearchHandler 实例
    """
    factory = factory or RoundRobinClientFactory()
    return LazyElasticsearchHandler(
        client=lambda: factory.from_config(config),
        options=HandlerOptions(index=config.index, ignore_error=ignore_error),
        enabled=config.enabled,
        formatter=KibanaCompatibleFormatter(config.index),
        level=level,
    )
