from __future__ import annotations
import copy
import logging
import threading
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

from .models import TickResult

"""Running statistics, comparison ratios and their Prometheus exposition.

The aggregator keeps a point-in-time snapshot (latest values, running
averages, candidate/baseline ratios) and mirrors it into gauges. Sampling the
gauges into a time series is the scraper's job.
"""

log = logging.getLogger(__name__)

RATIO_NAMES = ("duration", "wrapped_size", "public_key_size")

# Same bucket layout the key-issuing services use for their keygen histograms.
KEYGEN_BUCKETS = (0.0001, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)


@dataclass
class RunningStatistics:
    """Per-scheme cumulative wrap duration and sample count.

    Totals are kept as exact rationals so the running average of identical
    samples equals the sample itself.
    """
    totals: Dict[str, Fraction] = field(default_factory=dict)
    count: Dict[str, int] = field(default_factory=dict)

    def add(self, scheme: str, duration: float) -> None:
        self.totals[scheme] = self.totals.get(scheme, Fraction(0)) + Fraction(duration)
        self.count[scheme] = self.count.get(scheme, 0) + 1

    def total_duration(self, scheme: str) -> float:
        return float(self.totals.get(scheme, 0))

    def average(self, scheme: str) -> Optional[float]:
        n = self.count.get(scheme, 0)
        if n == 0:
            return None
        return float(self.totals[scheme] / n)


@dataclass
class MetricsSnapshot:
    attempts: int = 0
    failures: int = 0
    public_key_size: Dict[str, int] = field(default_factory=dict)
    wrapped_size: Dict[str, int] = field(default_factory=dict)
    wrap_duration: Dict[str, float] = field(default_factory=dict)
    wrap_duration_avg: Dict[str, float] = field(default_factory=dict)
    key_generation: Dict[str, float] = field(default_factory=dict)
    ciphertext_size: Optional[int] = None
    ratios: Dict[str, Optional[float]] = field(
        default_factory=lambda: {name: None for name in RATIO_NAMES}
    )


class PrometheusSink:
    """Gauges/counters registered on an explicit ``CollectorRegistry``."""

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        *,
        namespace: str = "client",
        issuer_namespace: str = "keyissuer",
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        reg = self.registry
        ns = namespace
        self.public_key_size = Gauge(
            f"{ns}_public_key_size_bytes", "Size of the fetched public key in bytes",
            ["scheme"], registry=reg,
        )
        self.wrapped_size = Gauge(
            f"{ns}_encrypted_key_size_bytes", "Size of the wrapped AES key in bytes",
            ["scheme"], registry=reg,
        )
        self.wrap_duration = Gauge(
            f"{ns}_encryption_duration_seconds", "Duration of the last key-wrap operation in seconds",
            ["scheme"], registry=reg,
        )
        self.wrap_duration_avg = Gauge(
            f"{ns}_encryption_duration_avg_seconds", "Running average of key-wrap duration in seconds",
            ["scheme"], registry=reg,
        )
        self.ciphertext_size = Gauge(
            f"{ns}_ciphertext_size_bytes", "Size of the AES ciphertext in bytes", registry=reg,
        )
        self.ratios = {
            "duration": Gauge(
                f"{ns}_encryption_duration_ratio",
                "Ratio of post-quantum to classical key-wrap duration", registry=reg,
            ),
            "wrapped_size": Gauge(
                f"{ns}_encrypted_key_size_ratio",
                "Ratio of post-quantum to classical wrapped key size", registry=reg,
            ),
            "public_key_size": Gauge(
                f"{ns}_public_key_size_ratio",
                "Ratio of post-quantum to classical public key size", registry=reg,
            ),
        }
        self.attempts = Counter(
            f"{ns}_encryption_operations", "Total number of benchmark tick attempts", registry=reg,
        )
        self.failures = Counter(
            f"{ns}_encryption_failures", "Benchmark ticks abandoned, by phase and scheme",
            ["phase", "scheme"], registry=reg,
        )
        self.tick_duration = Histogram(
            f"{ns}_tick_duration_seconds", "Wall time of a complete benchmark tick", registry=reg,
        )
        self.keygen_time = Gauge(
            f"{issuer_namespace}_key_generation_seconds", "Time taken to generate the last key pair",
            ["scheme"], registry=reg,
        )
        self.keygen_hist = Histogram(
            f"{issuer_namespace}_key_generation_duration_seconds", "Histogram of key pair generation time",
            ["scheme"], buckets=KEYGEN_BUCKETS, registry=reg,
        )

    def publish_scheme(self, scheme: str, snap: MetricsSnapshot) -> None:
        self.public_key_size.labels(scheme=scheme).set(snap.public_key_size[scheme])
        self.wrapped_size.labels(scheme=scheme).set(snap.wrapped_size[scheme])
        self.wrap_duration.labels(scheme=scheme).set(snap.wrap_duration[scheme])
        self.wrap_duration_avg.labels(scheme=scheme).set(snap.wrap_duration_avg[scheme])

    def publish_ratio(self, name: str, value: float) -> None:
        self.ratios[name].set(value)


class MetricsAggregator:
    """Fold complete ticks into running statistics and comparison ratios.

    ``baseline`` is the classical scheme (ratio denominator), ``candidate`` the
    post-quantum one. A ratio keeps its previous value whenever the baseline
    side is zero for the tick being recorded.
    """

    def __init__(
        self,
        stats: Optional[RunningStatistics] = None,
        sink: Optional[PrometheusSink] = None,
        *,
        baseline: str = "rsa",
        candidate: str = "ml-kem",
    ) -> None:
        self.stats = stats if stats is not None else RunningStatistics()
        self.sink = sink
        self.baseline = baseline
        self.candidate = candidate
        self._snap = MetricsSnapshot()
        self._lock = threading.Lock()

    def tick_started(self) -> None:
        with self._lock:
            self._snap.attempts += 1
            if self.sink is not None:
                self.sink.attempts.inc()

    def tick_failed(self, phase: str, scheme: Optional[str] = None) -> None:
        with self._lock:
            self._snap.failures += 1
            if self.sink is not None:
                self.sink.failures.labels(phase=phase, scheme=scheme or "none").inc()

    def record_key_generation(self, scheme: str, seconds: float) -> None:
        with self._lock:
            self._snap.key_generation[scheme] = seconds
            if self.sink is not None:
                self.sink.keygen_time.labels(scheme=scheme).set(seconds)
                self.sink.keygen_hist.labels(scheme=scheme).observe(seconds)

    def record(self, result: TickResult) -> None:
        missing = {self.baseline, self.candidate} - set(result.wraps)
        if missing:
            raise ValueError(f"tick {result.tick} lacks samples for {sorted(missing)}")
        with self._lock:
            snap = self._snap
            for name, wrap in result.wraps.items():
                self.stats.add(name, wrap.duration)
                snap.public_key_size[name] = result.keys[name].size
                snap.wrapped_size[name] = wrap.size
                snap.wrap_duration[name] = wrap.duration
                snap.wrap_duration_avg[name] = self.stats.average(name)
            snap.ciphertext_size = len(result.envelope.ciphertext)

            base, cand = self.baseline, self.candidate
            pairs = {
                "duration": (snap.wrap_duration[cand], snap.wrap_duration[base]),
                "wrapped_size": (snap.wrapped_size[cand], snap.wrapped_size[base]),
                "public_key_size": (snap.public_key_size[cand], snap.public_key_size[base]),
            }
            for ratio, (num, den) in pairs.items():
                if den > 0:
                    snap.ratios[ratio] = num / den
                else:
                    log.debug("tick %d: %s ratio skipped, baseline is zero", result.tick, ratio)

            if self.sink is not None:
                for name in result.wraps:
                    self.sink.publish_scheme(name, snap)
                self.sink.ciphertext_size.set(snap.ciphertext_size)
                for ratio, value in snap.ratios.items():
                    if value is not None:
                        self.sink.publish_ratio(ratio, value)
                self.sink.tick_duration.observe(result.duration)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return copy.deepcopy(self._snap)

    def statistics(self) -> RunningStatistics:
        with self._lock:
            return copy.deepcopy(self.stats)
