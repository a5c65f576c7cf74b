"""日志处理器数据模型定义模块."""

from dataclasses import dataclass

from ..exceptions import ConfigurationError

OP_TYPES = ("index", "create")


@dataclass
class HandlerOptions:
    """日志处理器选项.

    Attributes:
        index: 日志写入的索引名，默认 app-logs
        ignore_error: 写入失败时是否静默忽略，默认 False
        op_type: 写入操作类型，index 或 create（数据流需要 create）
    """

    index: str = "app-logs"
    ignore_error: bool = False
    op_type: str = "index"

    def __post_init__(self) -> None:
        if not self.index:
            raise ConfigurationError("index 不能为空")
        if self.op_type not in OP_TYPES:
            raise ConfigurationError(
                f"op_type 必须为 {' / '.join(OP_TYPES)}，当前值: {self.op_type}"
            )
