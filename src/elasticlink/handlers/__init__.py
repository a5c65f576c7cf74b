"""日志处理器模块 - 将 Python 日志写入 Elasticsearch.

主要组件:
    - LazyElasticsearchHandler: 惰性初始化客户端的日志处理器
    - ElasticsearchFormatter / KibanaCompatibleFormatter: 文档格式化器
    - HandlerOptions: 处理器选项
    - build_log_handler: 根据集成配置创建处理器

使用示例:
    from elasticlink.handlers import build_log_handler

    logging.getLogger().addHandler(build_log_handler(config))
"""

from .exceptions import LogHandlerError
from .formatter import ElasticsearchFormatter, KibanaCompatibleFormatter
from .models import HandlerOptions
from .tool import EXCLUDED_LOGGERS, LazyElasticsearchHandler, build_log_handler

__all__ = [
    # 处理器
    "LazyElasticsearchHandler",
    "build_log_handler",
    "EXCLUDED_LOGGERS",
    # 格式化器
    "ElasticsearchFormatter",
    "KibanaCompatibleFormatter",
    # 模型
    "HandlerOptions",
    # 异常
    "LogHandlerError",
]
