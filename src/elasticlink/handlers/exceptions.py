"""日志处理器异常定义模块."""

from ..exceptions import ElasticLinkError


class LogHandlerError(ElasticLinkError):
    """日志写入异常.

    当批量写入日志到 Elasticsearch 失败且未开启 ignore_error 时抛出。
    """

    pass
