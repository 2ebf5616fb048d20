# uniform_stock/core/logging.py
import logging
import sys

# 本项目自己的 logger 前缀（services / http_problem_handlers / db 都挂在它下面）
APP_LOGGER = "uniform_stock"

_FMT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "INFO", *, sql_echo: bool = False) -> None:
    """
    单一 stdout handler；重复调用不会叠加输出。

    - uniform_stock.*   跟随 LOG_LEVEL（库存变动的 INFO 日志、负期末告警都在这里）
    - sqlalchemy.engine SQL_ECHO 打开时由 SQLAlchemy 自己挂 handler，这里不再放大级别
    - aiosqlite         每条语句一条 DEBUG，固定压到 WARNING
    """
    lvl = level.upper()
    root = logging.getLogger()
    root.setLevel(lvl)

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FMT))
    root.addHandler(handler)

    logging.getLogger(APP_LOGGER).setLevel(lvl)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    if not sql_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(
            logging.INFO if lvl == "DEBUG" else logging.WARNING
        )
