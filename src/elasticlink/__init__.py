"""ElasticLink - Elasticsearch 轮询连接与日志集成工具包.

主要功能:
    - RoundRobinTransport: 在多个主机间轮询分发 HTTP 请求并自动故障转移
    - RoundRobinClientFactory: 创建使用轮询传输的 Elasticsearch 客户端
    - LazyElasticsearchHandler: 将 Python 日志写入 Elasticsearch

使用示例:
    from elasticlink import ElasticsearchConfig, RoundRobinClientFactory

    config = ElasticsearchConfig(hosts=["http://es1:9200", "http://es2:9200"])
    client = RoundRobinClientFactory().from_config(config)
"""

import logging

__version__ = "0.1.0"

# 导出连接组件
from elasticlink.connection import (
    ConnectionConfig,
    ElasticsearchConfig,
    RoundRobinClientFactory,
)

# 导出异常
from elasticlink.exceptions import ConfigurationError, ElasticLinkError

# 导出日志组件
from elasticlink.handlers import (
    KibanaCompatibleFormatter,
    LazyElasticsearchHandler,
    build_log_handler,
)

# 导出传输组件
from elasticlink.transport import RoundRobinTransport

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # 版本
    "__version__",
    # 传输
    "RoundRobinTransport",
    # 连接
    "RoundRobinClientFactory",
    "ElasticsearchConfig",
    "ConnectionConfig",
    # 日志
    "LazyElasticsearchHandler",
    "KibanaCompatibleFormatter",
    "build_log_handler",
    # 异常
    "ElasticLinkError",
    "ConfigurationError",
]
