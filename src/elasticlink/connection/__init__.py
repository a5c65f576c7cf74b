"""ES 客户端工厂模块 - 创建请求在多个主机间轮询分发的 Elasticsearch 客户端.

主要组件:
    - RoundRobinClientFactory: 客户端工厂，负责创建客户端并管理其生命周期
    - ElasticsearchConfig: 集成配置模型
    - ConnectionConfig: 连接池配置模型

使用示例:
    from elasticlink.connection import RoundRobinClientFactory

    factory = RoundRobinClientFactory()
    client = factory.create_client(["http://es1:9200", "http://es2:9200"])
"""

from .exceptions import ClientFactoryError, InvalidClientOptionError
from .models import ConnectionConfig, ElasticsearchConfig, normalize_hosts
from .tool import RoundRobinClientFactory

__all__ = [
    # 工厂
    "RoundRobinClientFactory",
    # 模型
    "ElasticsearchConfig",
    "ConnectionConfig",
    "normalize_hosts",
    # 异常
    "ClientFactoryError",
    "InvalidClientOptionError",
]
