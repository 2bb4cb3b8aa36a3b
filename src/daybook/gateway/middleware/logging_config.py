"""structlog 配置

DAYBOOK_LOG_FORMAT=json 输出单行 JSON，其余情况用控制台渲染。
uvicorn / aiosqlite / httpx 的标准库日志经 ProcessorFormatter 走同一条处理链。
"""

import logging
import os

import structlog

# 只在 DAYBOOK_LOG_LEVEL=DEBUG 时放开的第三方 logger
NOISY_LOGGERS = ("aiosqlite", "httpx", "httpcore")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging() -> None:
    """初始化 structlog 与标准库 root logger

    DAYBOOK_LOG_FORMAT: "dev"（默认）或 "json"
    DAYBOOK_LOG_LEVEL: root logger 级别，默认 INFO
    """
    level_name = os.environ.get("DAYBOOK_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(os.environ.get("DAYBOOK_LOG_FORMAT", "dev")),
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # 每条 SQL / 每个 HTTP 往返都会打日志
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_logfire(app=None) -> None:
    """按 LOGFIRE_SEND_TO_LOGFIRE=true 启用 Logfire（apm extra）

    同时 instrument FastAPI 应用与 httpx，远程后端的往返会出现在同一条 trace 里。
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return
    try:
        import logfire

        logfire.configure()
        if app is not None:
            logfire.instrument_fastapi(app)
        logfire.instrument_httpx()
    except Exception as e:
        # APM 不可用时仍以本地日志启动
        structlog.get_logger().warning(
            "logfire_init_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
