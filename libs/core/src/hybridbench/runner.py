from __future__ import annotations
"""Hybrid-encryption benchmark tick.

One tick fetches a public key per scheme, encrypts a message under a fresh
AES-256 key, wraps that key under every scheme and hands the complete set of
measurements to the aggregator. Any failure abandons the tick before anything
is recorded, so ratios are always computed from samples of the same tick.
"""

import enum
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

from .errors import BenchmarkError, WrapError
from .fetcher import KeySource
from .metrics import MetricsAggregator
from .models import EncryptedEnvelope, PublicKeyMaterial, TickResult, WrapResult
from .symmetric import SymmetricEncryptor

log = logging.getLogger(__name__)

DEFAULT_MESSAGES = (
    "量子コンピュータに対抗するポスト量子暗号",
    "Post-quantum key encapsulation versus classical RSA key transport",
    "hybrid encryption benchmark payload",
)


class TickPhase(str, enum.Enum):
    IDLE = "idle"
    FETCHING_KEYS = "fetching_keys"
    ENCRYPTING = "encrypting"
    WRAPPING_KEYS = "wrapping_keys"
    RECORDING = "recording"


class BenchmarkRunner:
    def __init__(
        self,
        sources: Sequence[KeySource],
        aggregator: MetricsAggregator,
        *,
        encryptor: Optional[SymmetricEncryptor] = None,
        messages: Sequence[str] = DEFAULT_MESSAGES,
        parallel_fetch: bool = False,
    ) -> None:
        if not sources:
            raise ValueError("at least one key source is required")
        if not messages:
            raise ValueError("message set must not be empty")
        names = [src.scheme.name for src in sources]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate schemes in key sources: {names}")
        missing = {aggregator.baseline, aggregator.candidate} - set(names)
        if missing:
            raise ValueError(f"no key source for compared schemes: {sorted(missing)}")
        self.sources: List[KeySource] = list(sources)
        self.aggregator = aggregator
        self.encryptor = encryptor or SymmetricEncryptor()
        self.messages = tuple(messages)
        self.parallel_fetch = parallel_fetch
        self.state = TickPhase.IDLE
        self.last_error: Optional[BenchmarkError] = None
        self.last_result: Optional[TickResult] = None

    def message_for(self, tick: int) -> str:
        return self.messages[tick % len(self.messages)]

    def _fetch_keys(self) -> Dict[str, PublicKeyMaterial]:
        if self.parallel_fetch and len(self.sources) > 1:
            with ThreadPoolExecutor(max_workers=len(self.sources)) as pool:
                futures = [(src.scheme.name, pool.submit(src.fetch)) for src in self.sources]
                # First failure in source order wins; the pool drains before it propagates.
                return {name: fut.result() for name, fut in futures}
        return {src.scheme.name: src.fetch() for src in self.sources}

    def _wrap(self, source: KeySource, material: PublicKeyMaterial, key: bytes) -> WrapResult:
        scheme = source.scheme
        try:
            return scheme.wrap(material.key, key)
        except BenchmarkError:
            raise
        except Exception as exc:
            raise WrapError(f"key wrap failed: {exc}", scheme=scheme.name) from exc

    def execute(self, tick: int) -> TickResult:
        """Run one tick to completion; raise the first ``BenchmarkError``."""
        start = time.perf_counter()
        message = self.message_for(tick)
        try:
            self.state = TickPhase.FETCHING_KEYS
            keys = self._fetch_keys()

            self.state = TickPhase.ENCRYPTING
            sym_key = self.encryptor.generate_key()
            ciphertext, iv = self.encryptor.encrypt(message.encode("utf-8"), sym_key)

            self.state = TickPhase.WRAPPING_KEYS
            wraps: Dict[str, WrapResult] = {}
            for src in self.sources:
                wraps[src.scheme.name] = self._wrap(src, keys[src.scheme.name], sym_key)

            self.state = TickPhase.RECORDING
            result = TickResult(
                tick=tick,
                message=message,
                keys=keys,
                envelope=EncryptedEnvelope(
                    wrapped_keys={name: w.wrapped for name, w in wraps.items()},
                    ciphertext=ciphertext,
                    iv=iv,
                ),
                wraps=wraps,
                duration=time.perf_counter() - start,
            )
            self.aggregator.record(result)
            return result
        except BenchmarkError as exc:
            if exc.phase is None:
                exc.phase = self.state.value
            raise
        finally:
            self.state = TickPhase.IDLE

    def run_once(self, tick: int) -> Optional[TickResult]:
        """Scheduler entry point: never raises ``BenchmarkError``."""
        self.aggregator.tick_started()
        try:
            result = self.execute(tick)
        except BenchmarkError as exc:
            self.last_error = exc
            self.aggregator.tick_failed(exc.phase or "unknown", exc.scheme)
            log.warning(
                "tick #%d abandoned in %s (scheme=%s): %s: %s",
                tick, exc.phase, exc.scheme or "-", type(exc).__name__, exc.args[0] if exc.args else exc,
            )
            return None
        self.last_error = None
        self.last_result = result
        self._log_summary(result)
        return result

    def _log_summary(self, result: TickResult) -> None:
        log.info(
            "tick #%d done in %.4fs: ciphertext %d bytes, iv %d bytes",
            result.tick, result.duration, len(result.envelope.ciphertext), len(result.envelope.iv),
        )
        for name, wrap in result.wraps.items():
            log.info(
                "  %s: public key %d bytes, wrapped key %d bytes, wrap %.6fs",
                name, result.keys[name].size, wrap.size, wrap.duration,
            )
