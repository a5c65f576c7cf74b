"""轮询传输工具模块.

提供 RoundRobinTransport 类：在多个上游主机之间轮询分发 HTTP 请求，
并在传输层失败时自动切换到下一个主机。

使用示例:
    import requests
    from elasticlink.transport import RoundRobinTransport

    transport = RoundRobinTransport(["http://es1:9200", "http://es2:9200"])

    session = requests.Session()
    session.mount("http://", transport)
    response = session.get("http://es1:9200/_search")
"""

from __future__ import annotations

import logging
import threading
from urllib.parse import urlsplit, urlunsplit

from requests import PreparedRequest, Response
from requests.adapters import BaseAdapter, HTTPAdapter
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from ..exceptions import ConfigurationError
from .models import Host

# 触发故障转移的传输层异常；HTTP 错误状态码不在此列
TRANSPORT_ERRORS: tuple[type[Exception], ...] = (RequestsConnectionError, Timeout)

# 可以重复发送的请求体类型；生成器、文件对象等流式请求体只能读取一次
REPLAYABLE_BODY_TYPES = (bytes, bytearray, str)


class RoundRobinTransport(BaseAdapter):
    """轮询故障转移传输.

    持有一组有序的上游主机和一个游标。每次发送请求时从游标位置开始，
    按轮询顺序逐个尝试主机，直到某个主机返回响应（无论状态码）或
    全部主机均传输失败。

    游标的读取与推进在锁内完成，同一实例可以在多线程间共享。

    作为 ``requests`` 的适配器实现，可以挂载到任意 ``requests.Session``，
    也可以直接调用 ``send()``。

    Attributes:
        _hosts: 解析后的主机列表
        _transport: 底层传输，负责发送已完整寻址的请求
        _logger: 诊断日志记录器
        _cursor: 下一次使用的主机下标

    Examples:
        >>> transport = RoundRobinTransport(["http://h1:9200", "http://h2:9200"])
        >>> transport.current_host_index()
        0
    """

    def __init__(
        self,
        hosts: list[str],
        transport: BaseAdapter | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        """初始化轮询传输.

        Args:
            hosts: 上游主机地址列表，不可为空
            transport: 底层传输，默认创建 ``HTTPAdapter``
            logger: 诊断日志记录器，默认使用模块日志记录器

        Raises:
            ConfigurationError: 当 hosts 为空或包含非法地址时抛出
        """
        super().__init__()
        if not hosts:
            raise ConfigurationError("hosts 不能为空，请提供至少一个主机地址")

        self._hosts = [Host(url) for url in hosts]
        self._transport = transport if transport is not None else HTTPAdapter()
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._cursor = 0
        self._lock = threading.Lock()

        self._logger.debug(
            f"轮询传输初始化完成: {len(self._hosts)} 个主机",
            extra={"hosts_count": len(self._hosts), "hosts": self.hosts()},
        )

    def _next_host_index(self) -> int:
        """读取当前游标并推进一位.

        Returns:
            本次尝试使用的主机下标
        """
        with self._lock:
            index = self._cursor
            self._cursor = (self._cursor + 1) % len(self._hosts)
        return index

    @staticmethod
    def _derive_request(request: PreparedRequest, host: Host) -> PreparedRequest:
        """生成指向指定主机的请求副本.

        仅覆盖 URL 的 scheme 与 netloc，method、path、query、headers 和 body
        保持不变，调用方传入的请求不会被修改。

        Args:
            request: 调用方的原始请求
            host: 选中的主机

        Returns:
            新的 PreparedRequest
        """
        derived = request.copy()
        parts = urlsplit(request.url)
        derived.url = urlunsplit(
            (host.scheme, host.netloc, parts.path, parts.query, parts.fragment)
        )
        return derived

    def send(
        self,
        request: PreparedRequest,
        stream: bool = False,
        timeout=None,
        verify: bool | str = True,
        cert=None,
        proxies=None,
    ) -> Response:
        """按轮询顺序发送请求，传输失败时切换主机.

        每个主机在一次调用中最多尝试一次。游标在每次尝试前无条件推进，
        因此调用结束后的游标位置反映尝试过的主机数量。

        Args:
            request: 待发送的请求
            stream: 是否流式读取响应体
            timeout: 单次尝试的超时设置，透传给底层传输
            verify: SSL 证书校验设置
            cert: 客户端证书
            proxies: 代理配置

        Returns:
        请求体为生成器、文件对象等只能读取一次的流时，第一次传输失败后不再
        切换主机，直接抛出该错误，避免向其他主机发送已被消费的请求体。

            第一个完成协议交换的主机返回的响应（包括 4xx/5xx 响应）

        Raises:
            requests.exceptions.ConnectionError: 全部主机失败且第一个错误为连接错误
            requests.exceptions.Timeout: 全部主机失败且第一个错误为超时
        """
        failures: list[tuple[Host, Exception]] = []
        replayable = request.body is None or isinstance(
            request.body, REPLAYABLE_BODY_TYPES
        )

        for _ in range(len(self._hosts)):
            host = self._hosts[self._next_host_index()]
            derived = self._derive_request(request, host)

            self._logger.debug(
                f"尝试向主机发送请求: {host.url} {request.method} {derived.url}",
                extra={"host": host.url, "method": request.method, "url": derived.url},
            )

            try:
                response = self._transport.send(
                    derived,
                    stream=stream,
                    timeout=timeout,
                    verify=verify,
                    cert=cert,
                    proxies=proxies,
                )
            except TRANSPORT_ERRORS as e:
                failures.append((host, e))
                if not replayable:
                    self._logger.error(
                        f"主机请求失败，流式请求体无法重发: {host.url}, 错误: {e}",
                        extra={"host": host.url, "error": str(e)},
                    )
                    raise
                self._logger.warning(
                    f"主机请求失败，尝试下一个主机: {host.url}, 错误: {e}",
                    extra={"host": host.url, "error": str(e)},
                )
                continue

            self._logger.debug(
                f"主机请求成功: {host.url}, 状态码: {response.status_code}",
                extra={"host": host.url, "status_code": response.status_code},
            )
            return response

        attempted_hosts = [host.url for host, _ in failures]
        self._logger.error(
            f"全部主机请求失败: {attempted_hosts}, 失败次数: {len(failures)}",
            extra={"attempted_hosts": attempted_hosts, "error_count": len(failures)},
        )
        # 抛出第一个错误，与轮询顺序一致
        raise failures[0][1]

    def reset(self) -> None:
        """将游标重置为第一个主机."""
        with self._lock:
            self._cursor = 0
        self._logger.debug("轮询游标已重置")

    def current_host_index(self) -> int:
        """返回下一次请求将使用的主机下标."""
        return self._cursor

    def hosts(self) -> list[str]:
        """返回配置的主机地址列表副本."""
        return [host.url for host in self._hosts]

    def close(self) -> None:
        """关闭底层传输."""
        self._transport.close()
