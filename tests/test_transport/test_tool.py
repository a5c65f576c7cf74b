"""RoundRobinTransport 单元测试.

覆盖核心逻辑（轮询顺序、故障转移、全部失败）、请求改写、
游标管理（reset、并发推进）和日志输出。
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock
from urllib.parse import urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter, HTTPAdapter

from elasticlink.exceptions import ConfigurationError
from elasticlink.transport.tool import RoundRobinTransport

# ============================================================
# 辅助 fixtures
# ============================================================

THREE_HOSTS = ["http://h1:9200", "http://h2:9200", "http://h3:9200"]


def make_response(status_code: int = 200) -> requests.Response:
    """构造一个指定状态码的响应对象."""
    response = requests.Response()
    response.status_code = status_code
    response._content = b"{}"
    return response


def make_request(
    url: str = "http://h1:9200/_search?q=status:error",
    method: str = "POST",
    body: bytes | None = b'{"query": {"match_all": {}}}',
) -> requests.PreparedRequest:
    """构造一个 PreparedRequest."""
    return requests.Request(
        method=method,
        url=url,
        headers={"Content-Type": "application/json", "X-Trace-Id": "abc"},
        data=body,
    ).prepare()


class RecordingAdapter(BaseAdapter):
    """记录每次请求目标主机的底层传输.

    failing_hosts 中的主机抛出对应异常，其余主机返回 status_code 响应。
    """

    def __init__(self, failing_hosts: dict | None = None, status_code: int = 200):
        super().__init__()
        self.failing_hosts = failing_hosts or {}
        self.status_code = status_code
        self.requests: list[requests.PreparedRequest] = []
        self.send_kwargs: list[dict] = []
        self.closed = False

    @property
    def netlocs(self) -> list[str]:
        return [urlsplit(r.url).netloc for r in self.requests]

    def send(self, request, **kwargs):
        self.requests.append(request)
        self.send_kwargs.append(kwargs)
        netloc = urlsplit(request.url).netloc
        if netloc in self.failing_hosts:
            raise self.failing_hosts[netloc]
        response = make_response(self.status_code)
        response.request = request
        response.url = request.url
        return response

    def close(self):
        self.closed = True


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def transport(adapter) -> RoundRobinTransport:
    return RoundRobinTransport(THREE_HOSTS, transport=adapter)


# ============================================================
# 初始化测试
# ============================================================


class TestRoundRobinTransportInit:
    """RoundRobinTransport 初始化测试."""

    def test_empty_hosts_raises_error(self) -> None:
        """测试空主机列表抛出 ConfigurationError."""
        with pytest.raises(ConfigurationError, match="hosts 不能为空"):
            RoundRobinTransport([])

    def test_empty_host_string_raises_error(self) -> None:
        """测试空主机地址抛出 ConfigurationError."""
        with pytest.raises(ConfigurationError):
            RoundRobinTransport(["http://h1:9200", ""])

    def test_single_host(self) -> None:
        """测试单个主机初始化成功."""
        transport = RoundRobinTransport(["http://localhost:9200"])
        assert transport.hosts() == ["http://localhost:9200"]
        assert transport.current_host_index() == 0

    def test_default_underlying_transport(self) -> None:
        """测试未提供底层传输时使用 HTTPAdapter."""
        transport = RoundRobinTransport(["http://localhost:9200"])
        assert isinstance(transport._transport, HTTPAdapter)

    def test_hosts_returns_copy(self, transport) -> None:
        """测试 hosts() 返回副本，修改返回值不影响内部列表."""
        hosts = transport.hosts()
        hosts.append("http://h4:9200")
        hosts[0] = "http://changed:9200"
        assert transport.hosts() == THREE_HOSTS

    def test_input_list_mutation_does_not_leak(self, adapter) -> None:
        """测试构造后修改传入列表不影响传输."""
        hosts = list(THREE_HOSTS)
        transport = RoundRobinTransport(hosts, transport=adapter)
        hosts.clear()
        assert transport.hosts() == THREE_HOSTS


# ============================================================
# 轮询与故障转移测试
# ============================================================


class TestRotation:
    """轮询顺序测试."""

    def test_rotation_order(self, transport, adapter) -> None:
        """测试成功请求按 h1, h2, h3, h1 顺序选择主机."""
        indexes = []
        for _ in range(4):
            transport.send(make_request())
            indexes.append(transport.current_host_index())

        assert adapter.netlocs == ["h1:9200", "h2:9200", "h3:9200", "h1:9200"]
        assert indexes == [1, 2, 0, 1]

    def test_single_host_cursor_stays_zero(self, adapter) -> None:
        """测试单主机时游标始终为 0."""
        transport = RoundRobinTransport(["http://h1:9200"], transport=adapter)
        for _ in range(3):
            transport.send(make_request())
            assert transport.current_host_index() == 0
        assert adapter.netlocs == ["h1:9200"] * 3

    def test_http_error_status_is_not_failover(self) -> None:
        """测试 500 响应视为传输成功，不尝试下一个主机."""
        adapter = RecordingAdapter(status_code=500)
        transport = RoundRobinTransport(
            ["http://h1:9200", "http://h2:9200"], transport=adapter
        )

        response = transport.send(make_request())

        assert response.status_code == 500
        assert adapter.netlocs == ["h1:9200"]
        assert transport.current_host_index() == 1


class TestFailover:
    """故障转移测试."""

    def test_failover_to_next_host(self) -> None:
        """测试 h1 连接失败时返回 h2 的响应，游标推进两位."""
        adapter = RecordingAdapter(
            failing_hosts={"h1:9200": requests.ConnectionError("refused")}
        )
        transport = RoundRobinTransport(THREE_HOSTS, transport=adapter)

        response = transport.send(make_request())

        assert response.status_code == 200
        assert adapter.netlocs == ["h1:9200", "h2:9200"]
        assert transport.current_host_index() == 2

    def test_timeout_triggers_failover(self) -> None:
        """测试超时触发故障转移."""
        adapter = RecordingAdapter(
            failing_hosts={"h1:9200": requests.exceptions.ReadTimeout("timed out")}
        )
        transport = RoundRobinTransport(
            ["http://h1:9200", "http://h2:9200"], transport=adapter
        )

        transport.send(make_request())

        assert adapter.netlocs == ["h1:9200", "h2:9200"]
        assert transport.current_host_index() == 0

    def test_all_hosts_fail_raises_first_error(self) -> None:
        """测试全部主机失败时抛出第一个主机的错误."""
        first = requests.ConnectionError("h1 refused")
        second = requests.exceptions.ConnectTimeout("h2 timeout")
        adapter = RecordingAdapter(
            failing_hosts={"h1:9200": first, "h2:9200": second}
        )
        transport = RoundRobinTransport(
            ["http://h1:9200", "http://h2:9200"], transport=adapter
        )

        with pytest.raises(requests.ConnectionError) as exc_info:
            transport.send(make_request())

        assert exc_info.value is first
        assert adapter.netlocs == ["h1:9200", "h2:9200"]
        assert transport.current_host_index() == 0

    def test_each_host_tried_once_starting_from_cursor(self) -> None:
        """测试全部失败时从当前游标开始每个主机只尝试一次."""
        adapter = RecordingAdapter(
            failing_hosts={
                "h1:9200": requests.ConnectionError("h1"),
                "h2:9200": requests.ConnectionError("h2"),
                "h3:9200": requests.ConnectionError("h3"),
            }
        )
        transport = RoundRobinTransport(THREE_HOSTS, transport=adapter)
        transport._cursor = 1

        with pytest.raises(requests.ConnectionError, match="h2"):
            transport.send(make_request())

        assert adapter.netlocs == ["h2:9200", "h3:9200", "h1:9200"]
        assert transport.current_host_index() == 1

    def test_non_transport_error_propagates_without_failover(self) -> None:
        """测试非传输层异常直接抛出，不尝试下一个主机."""
        adapter = RecordingAdapter(failing_hosts={"h1:9200": ValueError("bug")})
        transport = RoundRobinTransport(THREE_HOSTS, transport=adapter)

        with pytest.raises(ValueError, match="bug"):
            transport.send(make_request())

        assert adapter.netlocs == ["h1:9200"]

    def test_streaming_body_not_resent_after_failure(self) -> None:
        """测试生成器请求体在传输失败后直接抛错，不发往下一个主机."""
        error = requests.ConnectionError("h1 reset")
        adapter = RecordingAdapter(failing_hosts={"h1:9200": error})
        transport = RoundRobinTransport(THREE_HOSTS, transport=adapter)
        request = requests.Request(
            method="POST",
            url="http://h1:9200/_bulk",
            data=(chunk for chunk in [b'{"index": {}}\n', b'{"a": 1}\n']),
        ).prepare()

        with pytest.raises(requests.ConnectionError) as exc_info:
            transport.send(request)

        assert exc_info.value is error
        assert adapter.netlocs == ["h1:9200"]
        assert transport.current_host_index() == 1

    def test_streaming_body_sent_when_host_healthy(self, transport, adapter) -> None:
        """测试生成器请求体在主机正常时照常发送."""
        request = requests.Request(
            method="POST", url="http://h1:9200/_bulk", data=iter([b"{}\n"])
        ).prepare()

        assert transport.send(request).status_code == 200
        assert adapter.netlocs == ["h1:9200"]


# ============================================================
# 请求改写测试
# ============================================================


class TestRequestDerivation:
    """请求改写测试."""

    def test_only_scheme_host_port_are_rewritten(self) -> None:
        """测试仅改写 scheme、host、port，其余部分保持不变."""
        adapter = RecordingAdapter()
        transport = RoundRobinTransport(["https://node-b:9243"], transport=adapter)
        request = make_request(url="http://node-a:9200/logs-*/_search?size=10&q=a")

        transport.send(request)

        sent = adapter.requests[0]
        assert sent.url == "https://node-b:9243/logs-*/_search?size=10&q=a"
        assert sent.method == request.method
        assert sent.body == request.body
        assert dict(sent.headers) == dict(request.headers)

    def test_original_request_not_mutated(self, transport, adapter) -> None:
        """测试调用方的请求对象不会被修改."""
        request = make_request(url="http://other:9200/_bulk")
        original_headers = dict(request.headers)

        transport.send(request)
        transport.send(request)

        assert request.url == "http://other:9200/_bulk"
        assert dict(request.headers) == original_headers
        assert adapter.requests[0] is not request
        assert adapter.requests[0].url == "http://h1:9200/_bulk"
        assert adapter.requests[1].url == "http://h2:9200/_bulk"

    def test_host_without_scheme_defaults_to_http(self) -> None:
        """测试未带 scheme 的主机按 http 处理."""
        adapter = RecordingAdapter()
        transport = RoundRobinTransport(["node-c:9200"], transport=adapter)

        transport.send(make_request(url="https://x/_cat/health"))

        assert adapter.requests[0].url == "http://node-c:9200/_cat/health"

    def test_send_kwargs_forwarded(self, transport, adapter) -> None:
        """测试 timeout、verify 等参数透传给底层传输."""
        transport.send(make_request(), timeout=5, verify=False, stream=True)
        assert adapter.send_kwargs[0]["timeout"] == 5
        assert adapter.send_kwargs[0]["verify"] is False
        assert adapter.send_kwargs[0]["stream"] is True


# ============================================================
# 游标管理测试
# ============================================================


class TestCursor:
    """游标管理测试."""

    def test_reset_returns_to_first_host(self, transport, adapter) -> None:
        """测试 reset 后从第一个主机重新开始."""
        transport.send(make_request())
        transport.send(make_request())
        assert transport.current_host_index() == 2

        transport.reset()
        assert transport.current_host_index() == 0

        transport.send(make_request())
        assert adapter.netlocs[-1] == "h1:9200"

    def test_reset_is_idempotent(self, transport) -> None:
        """测试多次 reset 结果一致."""
        transport.reset()
        transport.reset()
        assert transport.current_host_index() == 0
        assert transport.hosts() == THREE_HOSTS

    def test_concurrent_sends_spread_evenly(self, transport, adapter) -> None:
        """测试并发请求时游标推进不丢失、不重复."""
        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(lambda _: transport.send(make_request()), range(300)))

        netlocs = adapter.netlocs
        assert len(netlocs) == 300
        assert netlocs.count("h1:9200") == 100
        assert netlocs.count("h2:9200") == 100
        assert netlocs.count("h3:9200") == 100
        assert transport.current_host_index() == 0


# ============================================================
# 日志与生命周期测试
# ============================================================


class TestLoggingAndLifecycle:
    """日志输出与生命周期测试."""

    def test_warning_per_failure_and_error_summary(self) -> None:
        """测试每次失败输出 warning，全部失败输出一条 error."""
        logger = MagicMock(spec=logging.Logger)
        adapter = RecordingAdapter(
            failing_hosts={
                "h1:9200": requests.ConnectionError("h1 down"),
                "h2:9200": requests.ConnectionError("h2 down"),
            }
        )
        transport = RoundRobinTransport(
            ["http://h1:9200", "http://h2:9200"], transport=adapter, logger=logger
        )

        with pytest.raises(requests.ConnectionError):
            transport.send(make_request())

        assert logger.warning.call_count == 2
        first_extra = logger.warning.call_args_list[0].kwargs["extra"]
        assert first_extra == {"host": "http://h1:9200", "error": "h1 down"}

        logger.error.assert_called_once()
        error_extra = logger.error.call_args.kwargs["extra"]
        assert error_extra["attempted_hosts"] == ["http://h1:9200", "http://h2:9200"]
        assert error_extra["error_count"] == 2

    def test_default_logger_emits_warning(self, caplog) -> None:
        """测试默认日志记录器输出故障转移警告."""
        adapter = RecordingAdapter(
            failing_hosts={"h1:9200": requests.ConnectionError("refused")}
        )
        transport = RoundRobinTransport(
            ["http://h1:9200", "http://h2:9200"], transport=adapter
        )

        with caplog.at_level(logging.WARNING, logger="elasticlink.transport.tool"):
            transport.send(make_request())

        assert any(
            getattr(record, "host", None) == "http://h1:9200"
            for record in caplog.records
        )

    def test_close_closes_underlying_transport(self, transport, adapter) -> None:
        """测试 close 关闭底层传输."""
        transport.close()
        assert adapter.closed is True

    def test_mounted_on_session(self, adapter) -> None:
        """测试挂载到 requests.Session 后请求按轮询分发."""
        transport = RoundRobinTransport(
            ["http://h1:9200", "http://h2:9200"], transport=adapter
        )
        session = requests.Session()
        session.mount("http://", transport)

        first = session.get("http://placeholder:9200/_cluster/health")
        second = session.get("http://placeholder:9200/_cluster/health")

        assert first.status_code == 200
        assert second.status_code == 200
        assert adapter.netlocs == ["h1:9200", "h2:9200"]
