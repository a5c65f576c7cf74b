"""轮询客户端与日志处理器使用示例.

本文件展示了如何创建在多个节点间轮询分发请求的 Elasticsearch 客户端，
以及如何把应用日志写入 Elasticsearch。
"""

import logging

import requests

from elasticlink import (
    ElasticsearchConfig,
    RoundRobinClientFactory,
    RoundRobinTransport,
    build_log_handler,
)

# 集成配置，通常来自应用配置文件
config = ElasticsearchConfig.from_dict(
    {
        "hosts": ["http://localhost:9200", "http://localhost:9201"],
        "index": "app-logs",
        "client_options": {"verify_certs": False},
    }
)


# ==================== 示例1：轮询客户端 ====================
def example_client():
    """创建轮询客户端并执行查询."""
    with RoundRobinClientFactory() as factory:
        client = factory.from_config(config)
        # 两次请求分别发往 9200 和 9201，某个节点不可用时自动切换
        for _ in range(2):
            print(client.info()["name"])


# ==================== 示例2：直接使用轮询传输 ====================
def example_transport():
    """将轮询传输挂载到 requests 会话."""
    transport = RoundRobinTransport(config.hosts)
    session = requests.Session()
    session.mount("http://", transport)

    # URL 中的主机会被替换为轮询选中的主机
    response = session.get("http://localhost:9200/_cluster/health")
    print(response.status_code, transport.current_host_index())

    transport.reset()
    session.close()


# ==================== 示例3：写入日志 ====================
def example_logging():
    """把应用日志写入 Elasticsearch，字段兼容 Kibana."""
    app_logger = logging.getLogger("app")
    app_logger.setLevel(logging.INFO)
    app_logger.addHandler(build_log_handler(config, level=logging.INFO))

    app_logger.info("订单创建成功", extra={"order_id": "A-1001"})


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    example_client()
    example_transport()
    example_logging()
