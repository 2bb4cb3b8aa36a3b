"""RestClient -- 远程数据 API（PostgREST 风格）调用封装

TaskQuery 翻译为查询参数：
    status=eq.OPEN  work_days=cs.{2024-03-04}  status=in.(OPEN,INBOX)
    order=priority.asc.nullslast,due_date.asc.nullslast  limit=5
计数通过 Prefer: count=exact + Content-Range 头获得。
"""

import time
from typing import Any

import httpx
import structlog

from daybook.core.query import FilterOp, QueryFilter, TaskQuery

from .exceptions import RemoteRequestError, RemoteUnreachableError

log = structlog.get_logger()

# 健康检查超时（硬编码，应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5

_REST_PREFIX = "/rest/v1"


def _format_filter(flt: QueryFilter) -> str:
    match flt.op:
        case FilterOp.IN:
            return f"in.({','.join(flt.value)})"
        case FilterOp.CONTAINS | FilterOp.OVERLAPS:
            return f"{flt.op.value}.{{{','.join(flt.value)}}}"
        case FilterOp.IS_NULL:
            return "is.null"
        case FilterOp.NOT_NULL:
            return "not.is.null"
    return f"{flt.op.value}.{flt.value}"


def query_params(query: TaskQuery) -> list[tuple[str, str]]:
    """TaskQuery -> 查询参数（同一列可出现多次）"""
    params = [(flt.column, _format_filter(flt)) for flt in query.filters]
    if query.orders:
        parts = []
        for order in query.orders:
            direction = "asc" if order.ascending else "desc"
            nulls = "nullsfirst" if order.nulls_first else "nullslast"
            parts.append(f"{order.column}.{direction}.{nulls}")
        params.append(("order", ",".join(parts)))
    if query.limit_count is not None:
        params.append(("limit", str(query.limit_count)))
    return params


def parse_content_range(value: str | None) -> int:
    """解析 Content-Range 中的总数（"0-4/12" / "*/0"）"""
    if not value or "/" not in value:
        return 0
    total = value.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0


def _error_message(resp: httpx.Response) -> tuple[str, str | None]:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase, None
    if not isinstance(body, dict):
        return str(body), None
    message = (
        body.get("message")
        or body.get("msg")
        or body.get("error_description")
        or body.get("error")
        or resp.reason_phrase
    )
    code = body.get("code") or body.get("error_code")
    return str(message), str(code) if code is not None else None


class RestClient:
    """远程后端 HTTP 客户端

    数据 API 与认证服务共用同一个连接池；登录后通过 set_access_token()
    切换为用户令牌，否则使用 anon key。
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str = "",
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化客户端

        Args:
            base_url: 后端项目 URL
            anon_key: 公开访问密钥
            timeout_s: 请求超时（秒）
            transport: 自定义传输层（测试时注入 MockTransport）
        """
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._access_token: str | None = None
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout_s,
            transport=transport,
            headers={"apikey": anon_key},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_access_token(self, token: str | None) -> None:
        self._access_token = token

    def _auth_headers(self) -> dict[str, str]:
        token = self._access_token or self._anon_key
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def request(
        self,
        method: str,
        path: str,
        params: Any = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """发送请求

        Raises:
            RemoteUnreachableError: 连接失败或超时
            RemoteRequestError: 非 2xx 响应
        """
        start_time = time.monotonic()
        try:
            resp = await self._http.request(
                method,
                path,
                params=params,
                json=json,
                headers={**self._auth_headers(), **(headers or {})},
            )
        except httpx.TransportError as e:
            log.error(
                "remote_request_unreachable",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RemoteUnreachableError(base_url=self._base_url, original_error=e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        if resp.status_code >= 400:
            message, code = _error_message(resp)
            log.warning(
                "remote_request_failed",
                method=method,
                path=path,
                status_code=resp.status_code,
                code=code,
                duration_ms=duration_ms,
            )
            raise RemoteRequestError(resp.status_code, message, code=code)

        log.debug(
            "remote_request_completed",
            method=method,
            path=path,
            status_code=resp.status_code,
            duration_ms=duration_ms,
        )
        return resp

    async def select(
        self,
        table: str,
        columns: str,
        query: TaskQuery | None = None,
        filters: dict[str, str] | None = None,
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        params: list[tuple[str, str]] = [("select", columns)]
        if query is not None:
            params.extend(query_params(query))
        params.extend((filters or {}).items())
        if order:
            params.append(("order", order))
        resp = await self.request("GET", f"{_REST_PREFIX}/{table}", params=params)
        return resp.json()

    async def count(
        self,
        table: str,
        query: TaskQuery | None = None,
    ) -> int:
        """精确计数（HEAD 请求，忽略排序与 limit）"""
        params: list[tuple[str, str]] = [("select", "id")]
        if query is not None:
            params.extend(
                (key, value) for key, value in query_params(query)
                if key not in ("order", "limit")
            )
        resp = await self.request(
            "HEAD",
            f"{_REST_PREFIX}/{table}",
            params=params,
            headers={"Prefer": "count=exact"},
        )
        return parse_content_range(resp.headers.get("content-range"))

    async def insert(
        self, table: str, values: dict[str, Any], columns: str
    ) -> dict[str, Any]:
        resp = await self.request(
            "POST",
            f"{_REST_PREFIX}/{table}",
            params={"select": columns},
            json=values,
            headers={"Prefer": "return=representation"},
        )
        rows = resp.json()
        return rows[0] if isinstance(rows, list) else rows

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        filters: dict[str, str],
        columns: str | None = None,
    ) -> list[dict[str, Any]]:
        params = {**filters}
        if columns:
            params["select"] = columns
        resp = await self.request(
            "PATCH",
            f"{_REST_PREFIX}/{table}",
            params=params,
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return resp.json()

    async def delete(self, table: str, filters: dict[str, str]) -> list[dict[str, Any]]:
        resp = await self.request(
            "DELETE",
            f"{_REST_PREFIX}/{table}",
            params={**filters, "select": "id"},
            headers={"Prefer": "return=representation"},
        )
        return resp.json()

    async def ping(self) -> bool:
        """检查后端可达性

        注意: 此方法不抛出异常，所有异常内部捕获并返回 False。
        """
        try:
            resp = await self._http.get(
                f"{_REST_PREFIX}/", timeout=HEALTH_CHECK_TIMEOUT_S
            )
        except httpx.HTTPError as e:
            log.debug("remote_ping_failed", url=self._base_url, error=str(e))
            return False
        return resp.status_code < 500

    async def close(self) -> None:
        await self._http.aclose()
