"""ES 客户端工厂工具模块.

提供 RoundRobinClientFactory 类，用于创建请求在多个主机间轮询分发的
Elasticsearch 客户端，并统一管理其生命周期。

使用示例:
    from elasticlink.connection import ElasticsearchConfig, RoundRobinClientFactory

    config = ElasticsearchConfig(hosts=["http://es1:9200", "http://es2:9200"])

    with RoundRobinClientFactory() as factory:
        client = factory.from_config(config)
        client.search(index="app-logs", query={"match_all": {}})
"""

from __future__ import annotations

import logging
from typing import Any

from elasticsearch import Elasticsearch
from requests.adapters import HTTPAdapter

from ..exceptions import ConfigurationError
from ..transport import Host, RoundRobinTransport
from .exceptions import InvalidClientOptionError
from .models import ConnectionConfig, ElasticsearchConfig

# 由工厂自身管理、不允许通过 options 覆盖的客户端参数
RESERVED_OPTIONS = ("hosts", "node_class", "api_key")


class RoundRobinClientFactory:
    """轮询 Elasticsearch 客户端工厂.

    创建的客户端只配置一个种子节点，该节点内部的 requests 会话挂载了
    RoundRobinTransport，每个请求都会在全部主机间轮询并自动故障转移。

    Attributes:
        _connection_config: 连接池配置
        _logger: 日志记录器
        _clients: 已创建的客户端列表

    Examples:
        >>> factory = RoundRobinClientFactory()
        >>> client = factory.create_client(["http://es1:9200", "http://es2:9200"])
    """

    def __init__(
        self,
        connection_config: ConnectionConfig | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        """初始化客户端工厂.

        Args:
            connection_config: 连接池配置，默认使用 ConnectionConfig 的默认值
            logger: 日志记录器，同时传递给创建的轮询传输
        """
        self._connection_config = connection_config or ConnectionConfig()
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._clients: list[Elasticsearch] = []

    def create_transport(self, hosts: list[str]) -> RoundRobinTransport:
        """创建轮询传输.

        底层使用连接池大小由 ConnectionConfig 决定的 HTTPAdapter。

        Args:
            hosts: 主机地址列表

        Returns:
            RoundRobinTransport 实例

        Raises:
            ConfigurationError: 当 hosts 为空或包含非法地址时抛出
        """
        adapter = HTTPAdapter(
            pool_connections=max(len(hosts), 1),
            pool_maxsize=self._connection_config.max_connections,
        )
        return RoundRobinTransport(hosts, transport=adapter, logger=self._logger)

    def _check_options(self, options: dict[str, Any]) -> None:
        """校验额外的客户端选项.

        Raises:
            InvalidClientOptionError: 当选项由工厂管理时抛出
        """
        for option in options:
            if option in RESERVED_OPTIONS:
                raise InvalidClientOptionError(option, "该选项由客户端工厂管理，不能覆盖")

    def create_client(
        self,
        hosts: list[str],
        api_key: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> Elasticsearch:
        """创建轮询负载均衡的 Elasticsearch 客户端.

        Args:
            hosts: ES 节点地址列表，不可为空
            api_key: API Key 认证
            options: 透传给 Elasticsearch 构造函数的额外参数

        Returns:
            Elasticsearch 客户端实例

        Raises:
            ConfigurationError: 当 hosts 为空时抛出
            InvalidClientOptionError: 当 options 包含工厂管理的参数时抛出
        """
        if not hosts:
            raise ConfigurationError("hosts 不能为空，请提供至少一个 ES 节点地址")
        options = dict(options or {})
        self._check_options(options)

        self._logger.info(
            f"创建轮询负载均衡的 Elasticsearch 客户端: {len(hosts)} 个主机",
            extra={"hosts_count": len(hosts), "hosts": list(hosts)},
        )

        transport = self.create_transport(hosts)
        seed = Host(hosts[0])

        kwargs: dict[str, Any] = {
            "hosts": [f"{seed.scheme}://{seed.netloc}"],
            "node_class": "requests",
            "max_retries": self._connection_config.max_retries,
            "retry_on_timeout": self._connection_config.retry_on_timeout,
            "request_timeout": self._connection_config.request_timeout,
            "http_compress": self._connection_config.http_compress,
        }

        if api_key is not None:
            kwargs["api_key"] = api_key
            self._logger.debug("已为 Elasticsearch 客户端配置 API Key 认证")

        kwargs.update(options)

        client = Elasticsearch(**kwargs)
        for node in client.transport.node_pool.all():
            node.session.mount("http://", transport)
            node.session.mount("https://", transport)

        self._logger.debug(f"轮询传输已挂载到种子节点: {seed.url}")
        self._clients.append(client)
        return client

    def from_config(self, config: ElasticsearchConfig) -> Elasticsearch:
        """根据集成配置创建客户端.

        Args:
            config: Elasticsearch 集成配置

        Returns:
            Elasticsearch 客户端实例
        """
        return self.create_client(
            config.hosts,
            api_key=config.api_key,
            options=config.client_options,
        )

    # ============================================================
    # 生命周期管理
    # ============================================================

    def __enter__(self) -> RoundRobinClientFactory:
        """上下文管理器入口.

        Returns:
            工厂实例自身
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """上下文管理器退出，自动关闭所有客户端."""
        self.close_all()

    def close_all(self) -> None:
        """关闭所有已创建的客户端连接.

        单个客户端关闭失败不会影响其余客户端，失败信息记录为警告日志。
        """
        for client in self._clients:
            try:
                client.close()
            except Exception as e:
                self._logger.warning(f"关闭 Elasticsearch 客户端失败: {e}")
        self._clients.clear()
