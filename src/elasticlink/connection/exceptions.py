"""客户端工厂异常定义模块."""

from ..exceptions import ConfigurationError, ElasticLinkError


class ClientFactoryError(ElasticLinkError):
    """客户端工厂基础异常类.

    所有客户端工厂相关异常的基类，继承自 ElasticLinkError。
    """

    pass


class InvalidClientOptionError(ClientFactoryError, ConfigurationError):
    """客户端选项非法异常.

    当 client_options 中包含由工厂自身管理的选项（例如 hosts、node_class）时抛出。
    """

    def __init__(self, option: str, reason: str) -> None:
        self.option = option
        self.reason = reason
        super().__init__(f'客户端选项 "{option}" 非法: {reason}')
