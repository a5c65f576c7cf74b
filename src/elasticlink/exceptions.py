"""ElasticLink 异常定义模块."""


class ElasticLinkError(Exception):
    """ElasticLink 基础异常类."""

    pass


class ConfigurationError(ElasticLinkError, ValueError):
    """配置异常.

    当主机列表为空、主机地址非法或选项取值不合法时抛出。
    在对象构造阶段同步抛出，不会被重试。
    """

    pass
