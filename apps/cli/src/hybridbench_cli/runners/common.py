from __future__ import annotations
"""Shared wiring for CLI commands.

Includes adapter bootstrap, construction of key sources/runner/aggregator
from a ``BenchmarkConfig``, and JSON export of tick summaries.
"""

import importlib
import importlib.util
import json
import logging
import pathlib
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from hybridbench import (
    BenchmarkConfig,
    BenchmarkRunner,
    HttpPublicKeyFetcher,
    LocalKeySource,
    MetricsAggregator,
    PrometheusSink,
    RunningStatistics,
    registry,
)
from hybridbench.fetcher import KeySource

log = logging.getLogger(__name__)

BASELINE = "rsa"
CANDIDATE = "ml-kem"

_ADAPTER_MODULES = ("hybridbench_rsa", "hybridbench_liboqs")
_ADAPTER_INSTANCE_CACHE: Dict[Tuple[str, Tuple[Tuple[str, Any], ...]], Any] = {}


def _load_adapters() -> None:
    for mod in _ADAPTER_MODULES:
        if importlib.util.find_spec(mod) is None:
            log.warning("adapter package %s is not installed", mod)
            continue
        try:
            importlib.import_module(mod)
        except Exception:
            log.exception("failed to import adapter package %s", mod)


def _get_adapter_instance(name: str, **kwargs: Any):
    key = (name, tuple(sorted(kwargs.items())))
    adapter = _ADAPTER_INSTANCE_CACHE.get(key)
    if adapter is not None:
        return adapter
    cls = registry.get(name)
    adapter = cls(**kwargs)
    _ADAPTER_INSTANCE_CACHE[key] = adapter
    return adapter


def reset_adapter_cache(name: Optional[str] = None) -> None:
    """Drop cached adapter instances so env-driven overrides take effect."""
    if name is None:
        _ADAPTER_INSTANCE_CACHE.clear()
        return
    for key in [k for k in _ADAPTER_INSTANCE_CACHE if k[0] == name]:
        del _ADAPTER_INSTANCE_CACHE[key]


@dataclass
class BenchmarkStack:
    runner: BenchmarkRunner
    aggregator: MetricsAggregator
    sink: PrometheusSink


def build_stack(config: BenchmarkConfig, *, session: Optional[requests.Session] = None) -> BenchmarkStack:
    """Instantiate schemes, key sources, aggregator and runner for ``config``."""
    _load_adapters()
    scheme_kwargs: Dict[str, Dict[str, Any]] = {
        BASELINE: {},
        CANDIDATE: {"bind_secret": config.bind_kem_secret},
    }
    urls = {BASELINE: config.rsa_url, CANDIDATE: config.mlkem_url}

    sink = PrometheusSink()
    aggregator = MetricsAggregator(RunningStatistics(), sink, baseline=BASELINE, candidate=CANDIDATE)
    http = session or requests.Session()
    sources: List[KeySource] = []
    for name in (BASELINE, CANDIDATE):
        scheme = _get_adapter_instance(name, **scheme_kwargs[name])
        if config.local_keys:
            sources.append(LocalKeySource(scheme, on_keygen=aggregator.record_key_generation))
        else:
            sources.append(HttpPublicKeyFetcher(scheme, urls[name], timeout=config.http_timeout, session=http))
    runner = BenchmarkRunner(
        sources,
        aggregator,
        messages=config.messages,
        parallel_fetch=config.parallel_fetch,
    )
    return BenchmarkStack(runner=runner, aggregator=aggregator, sink=sink)


def snapshot_payload(stack: BenchmarkStack) -> Dict[str, Any]:
    snap = asdict(stack.aggregator.snapshot())
    stats = stack.aggregator.statistics()
    snap["running"] = {
        name: {"ticks": stats.count[name], "total_duration_s": stats.total_duration(name)}
        for name in stats.count
    }
    return snap


def export_json(data: dict, export_path: str | None) -> None:
    if not export_path:
        return
    # Normalize Windows-style separators on POSIX if users pass e.g. "results\file.json"
    if "\\" in export_path and ":" not in export_path:
        export_path = export_path.replace("\\", "/")
    path = pathlib.Path(export_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
