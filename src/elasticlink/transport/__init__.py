"""轮询传输模块 - 在多个 Elasticsearch 节点之间轮询分发请求并自动故障转移.

主要组件:
    - RoundRobinTransport: 轮询故障转移传输（requests 适配器）
    - Host: 上游主机模型
    - TRANSPORT_ERRORS: 触发故障转移的传输层异常

使用示例:
    from elasticlink.transport import RoundRobinTransport

    transport = RoundRobinTransport(["http://es1:9200", "http://es2:9200"])
    session.mount("http://", transport)
"""

from .models import Host
from .tool import TRANSPORT_ERRORS, RoundRobinTransport

__all__ = [
    # 传输
    "RoundRobinTransport",
    "TRANSPORT_ERRORS",
    # 模型
    "Host",
]
