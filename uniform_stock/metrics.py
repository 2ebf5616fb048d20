# uniform_stock/metrics.py
from __future__ import annotations

import os

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, generate_latest, multiprocess

# 数据质量告警：不中断请求，只计数 + 日志，交给监控发现
NEGATIVE_ENDING = Counter(
    "inventory_negative_ending_total",
    "Report rows whose derived ending inventory is negative",
    ["education_level"],
)
VARIANT_ENCODING_WARNINGS = Counter(
    "inventory_variant_encoding_warnings_total",
    "Legacy size-variant encodings that failed to parse or degraded",
    ["strategy"],
)
STOCK_MOVEMENTS = Counter(
    "inventory_stock_movements_total",
    "Applied stock movements",
    ["reason"],
)

router = APIRouter()


@router.get("/metrics")
def metrics() -> Response:
    """
    单进程直接导出默认 REGISTRY；
    多进程（PROMETHEUS_MULTIPROC_DIR）下合并各 worker 分片。
    """
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        payload = generate_latest(registry)
    else:
        payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
