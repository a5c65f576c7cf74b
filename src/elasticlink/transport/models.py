"""轮询传输层数据模型定义模块.

提供上游主机地址模型：
- Host: 单个上游主机（scheme + hostname + 可选端口）
"""

from dataclasses import dataclass, field
from urllib.parse import urlsplit

from ..exceptions import ConfigurationError

DEFAULT_SCHEME = "http"


@dataclass(frozen=True)
class Host:
    """上游主机模型.

    由形如 URL 的字符串解析得到，构造后不可变。未携带 scheme 的地址
    （例如 ``localhost:9200``）按 ``http`` 处理。

    Attributes:
        url: 原始配置的主机地址
        scheme: 协议，例如 http / https
        netloc: 网络位置（hostname 与可选端口）
        port: 端口，未指定时为 None

    Raises:
        ConfigurationError: 当地址为空、端口非法或无法解析出 hostname 时抛出

    Examples:
        >>> host = Host("https://es1:9200")
        >>> host.scheme, host.netloc
        ('https', 'es1:9200')
    """

    url: str
    scheme: str = field(init=False)
    netloc: str = field(init=False)
    port: int | None = field(init=False)

    def __post_init__(self) -> None:
        """解析并校验主机地址."""
        if not isinstance(self.url, str) or not self.url.strip():
            raise ConfigurationError("主机地址不能为空")

        raw = self.url.strip()
        if "://" not in raw:
            raw = f"{DEFAULT_SCHEME}://{raw}"

        try:
            parts = urlsplit(raw)
            port = parts.port
        except ValueError as e:
            raise ConfigurationError(f"主机地址无法解析: {self.url}, 错误: {e}") from e

        if not parts.hostname:
            raise ConfigurationError(f"主机地址缺少 hostname: {self.url}")

        object.__setattr__(self, "scheme", parts.scheme.lower())
        object.__setattr__(self, "netloc", parts.netloc)
        object.__setattr__(self, "port", port)
