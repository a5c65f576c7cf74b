"""客户端工厂数据模型定义模块.

提供客户端工厂相关的数据模型，包括：
- ElasticsearchConfig: 集成配置（主机、认证、索引、客户端选项）
- ConnectionConfig: 连接池配置
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ConfigurationError

DEFAULT_HOSTS = ["http://localhost:9200"]
DEFAULT_INDEX = "app-logs"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def normalize_hosts(value: Any) -> list[str]:
    """将配置中的 hosts 规范化为字符串列表.

    - 单个字符串转换为单元素列表
    - 列表中的嵌套列表展开一层
    - 其他标量包装为单元素列表

    Args:
        value: 原始 hosts 配置

    Returns:
        规范化后的主机地址列表

    Examples:
        >>> normalize_hosts("http://es1:9200")
        ['http://es1:9200']
        >>> normalize_hosts(["http://es1:9200", ["http://es2:9200"]])
        ['http://es1:9200', 'http://es2:9200']
    """
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        hosts: list[str] = []
        for item in value:
            if isinstance(item, (list, tuple)):
                hosts.extend(item)
            else:
                hosts.append(item)
        return hosts
    return [value]


def _to_bool(value: Any) -> bool:
    """将配置值转换为布尔值，支持常见的字符串写法."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"enabled 取值非法: {value!r}")
    return bool(value)


@dataclass
class ElasticsearchConfig:
    """Elasticsearch 集成配置模型.

    Attributes:
        enabled: 是否启用集成，默认 True
        hosts: ES 节点地址列表（不可为空，每个地址不可为空）
        api_key: API Key 认证
        index: 日志默认写入的索引名，默认 app-logs
        client_options: 透传给 Elasticsearch 客户端的额外参数

    Raises:
        ConfigurationError: 当 hosts 为空或包含空地址时抛出

    Examples:
        >>> config = ElasticsearchConfig.from_dict(
        ...     {"hosts": "http://es1:9200", "index": "service-logs"}
        ... )
        >>> config.hosts
        ['http://es1:9200']
    """

    enabled: bool = True
    hosts: list[str] = field(default_factory=lambda: list(DEFAULT_HOSTS))
    api_key: str | None = None
    index: str = DEFAULT_INDEX
    client_options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """校验集成配置参数合法性."""
        if not self.hosts:
            raise ConfigurationError("hosts 不能为空，请提供至少一个 ES 节点地址")
        for host in self.hosts:
            if not isinstance(host, str) or not host.strip():
                raise ConfigurationError(f"hosts 中包含空地址: {self.hosts!r}")
        if not self.index:
            raise ConfigurationError("index 不能为空")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ElasticsearchConfig":
        """从字典构建配置，缺失的键使用默认值.

        Args:
            data: 原始配置字典，键为 enabled / hosts / api_key / index / client_options

        Returns:
            ElasticsearchConfig 实例

        Raises:
            ConfigurationError: 当配置不合法时抛出
        """
        hosts = data.get("hosts")
        return cls(
            enabled=_to_bool(data.get("enabled", True)),
            hosts=list(DEFAULT_HOSTS) if hosts is None else normalize_hosts(hosts),
            api_key=data.get("api_key"),
            index=data.get("index", DEFAULT_INDEX),
            client_options=dict(data.get("client_options") or {}),
        )


@dataclass
class ConnectionConfig:
    """连接池配置模型.

    定义 ES 客户端的连接池参数和重试策略。

    Attributes:
        max_connections: 每个主机的最大连接数，默认 10，必须 >= 1
        max_retries: 客户端层最大重试次数，默认 3
        retry_on_timeout: 超时是否重试，默认 True
        request_timeout: 请求超时时间（秒），默认 30，必须 >= 0
        http_compress: 是否启用 HTTP 压缩，默认 True

    Raises:
        ConfigurationError: 当参数不合法时抛出

    Examples:
        >>> config = ConnectionConfig(max_connections=20, request_timeout=60)
    """

    max_connections: int = 10
    max_retries: int = 3
    retry_on_timeout: bool = True
    request_timeout: int = 30
    http_compress: bool = True

    def __post_init__(self) -> None:
        """校验连接池配置参数合法性."""
        if self.max_connections < 1:
            raise ConfigurationError(
                f"max_connections 必须 >= 1，当前值: {self.max_connections}"
            )
        if self.request_timeout < 0:
            raise ConfigurationError(
                f"request_timeout 必须 >= 0，当前值: {self.request_timeout}"
            )
