from __future__ import annotations
import json
import logging
import time
from typing import Optional

import typer
from prometheus_client import start_http_server

from hybridbench import BenchmarkConfig, ConfigError, TickScheduler, registry
from .runners.common import _load_adapters, build_stack, export_json, snapshot_payload

app = typer.Typer(add_completion=False, help="RSA-OAEP vs ML-KEM hybrid encryption benchmark")

log = logging.getLogger("hybridbench_cli")


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"unknown log level {level!r}", param_hint="--log-level")
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


@app.callback()
def main(
    ctx: typer.Context,
    rsa_url: Optional[str] = typer.Option(None, help="RSA key service endpoint."),
    mlkem_url: Optional[str] = typer.Option(None, help="ML-KEM key service endpoint."),
    timeout: Optional[float] = typer.Option(None, help="Per-request HTTP timeout in seconds."),
    local_keys: Optional[bool] = typer.Option(
        None, "--local-keys/--remote-keys",
        help="Generate key pairs in-process instead of fetching them.",
    ),
    bind_kem_secret: Optional[bool] = typer.Option(
        None, "--bind-kem-secret/--no-bind-kem-secret",
        help="Use the ML-KEM shared secret to key-wrap the AES key.",
    ),
    parallel_fetch: Optional[bool] = typer.Option(
        None, "--parallel-fetch/--serial-fetch",
        help="Fetch both public keys concurrently.",
    ),
    log_level: Optional[str] = typer.Option(None, help="Logging level (DEBUG, INFO, ...)."),
) -> None:
    """Settings come from HYBRIDBENCH_* environment variables; options override them."""
    try:
        config = BenchmarkConfig.from_env().with_overrides(
            rsa_url=rsa_url,
            mlkem_url=mlkem_url,
            http_timeout=timeout,
            local_keys=local_keys,
            bind_kem_secret=bind_kem_secret,
            parallel_fetch=parallel_fetch,
            log_level=log_level,
        )
    except ConfigError as exc:
        typer.echo(f"configuration error: {exc}", err=True)
        raise typer.Exit(code=2)
    _configure_logging(config.log_level)
    ctx.obj = config


def _build(config: BenchmarkConfig):
    try:
        return build_stack(config)
    except (KeyError, RuntimeError, ValueError) as exc:
        typer.echo(f"cannot set up benchmark: {exc}", err=True)
        raise typer.Exit(code=1)


@app.command("list-schemes")
def list_schemes():
    """List registered key-wrap schemes."""
    _load_adapters()
    for name, cls in registry.list().items():
        kind = "classical" if getattr(cls, "classical", False) else "post-quantum"
        typer.echo(f"- {name} ({kind})")


@app.command()
def once(
    ctx: typer.Context,
    export: str = typer.Option("", help="Also write the JSON summary to this path."),
):
    """Run a single benchmark tick and print its JSON summary."""
    stack = _build(ctx.obj)
    result = stack.runner.run_once(1)
    if result is None:
        err = stack.runner.last_error
        typer.echo(f"tick failed: {type(err).__name__}: {err}", err=True)
        raise typer.Exit(code=1)
    payload = {"tick": result.summary(), "metrics": snapshot_payload(stack)}
    export_json(payload, export)
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command()
def run(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(None, help="Seconds between ticks."),
    max_ticks: Optional[int] = typer.Option(None, help="Stop after this many ticks."),
    metrics_port: Optional[int] = typer.Option(None, help="Prometheus scrape port (0 disables)."),
    startup_delay: Optional[float] = typer.Option(None, help="Seconds to wait for the key services."),
):
    """Run the benchmark loop until interrupted."""
    try:
        config: BenchmarkConfig = ctx.obj.with_overrides(
            interval=interval, metrics_port=metrics_port, startup_delay=startup_delay,
        )
    except ConfigError as exc:
        typer.echo(f"configuration error: {exc}", err=True)
        raise typer.Exit(code=2)
    stack = _build(config)
    if config.metrics_port:
        start_http_server(config.metrics_port, registry=stack.sink.registry)
        log.info("metrics exposed on :%d/metrics", config.metrics_port)
    if config.startup_delay:
        log.info("waiting %.1fs for key services", config.startup_delay)
        time.sleep(config.startup_delay)

    log.info("running hybrid encryption every %.3fs", config.interval)
    scheduler = TickScheduler(stack.runner.run_once, config.interval)
    try:
        scheduler.run(max_ticks=max_ticks)
    except KeyboardInterrupt:
        scheduler.stop()
    snap = stack.aggregator.snapshot()
    typer.echo(
        f"ticks={scheduler.ticks} succeeded={snap.attempts - snap.failures} "
        f"failed={snap.failures} coalesced={scheduler.coalesced}"
    )


def app_main():
    app()

if __name__ == "__main__":
    app_main()
