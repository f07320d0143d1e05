"""
entropy.cli
-----------

Command line entry point for the observable entropy beacon.

Commands:
  - collect    : Run the source connectors into the collection directory.
  - clean      : Remove collected source files (keeps the previous round archive).
  - generate   : Archive the current round, then build, sign and write a new one.
  - verify     : Check the current round's signature and recompute it from the sources.
  - index      : Map the archived previous round's digest to the parent commit id.
  - upload-kv  : Publish the current round to Cloudflare KV (best-effort).
  - keygen     : Print a fresh Ed25519 key pair as hex.

Environment:
  ED25519_PRIVATE_KEY  : hex signing key for `generate`
  PARENT_COMMIT_ID     : commit id for `index`
  ENTROPY_*            : configuration overrides (see entropy.config)
  ENTROPY_LOG_FORMAT   : json|text

Example:
  entropy collect && entropy generate && entropy verify
  python -m entropy.cli index --commit-id 0x$(git rev-parse HEAD^)
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, TypeVar

import typer

from entropy import logging as elog
from entropy.beacon.index import index_previous_round
from entropy.beacon.round import generate_round
from entropy.beacon.signing import generate_keypair
from entropy.beacon.verify import verify_round
from entropy.config import EntropyConfig
from entropy.errors import EntropyError, MissingArtifactError
from entropy.sources.connectors import CONNECTORS, clean_sources, collect_sources
from entropy.sources.http import make_client
from entropy.sources.publish import upload_latest
from entropy.store import read_json_optional
from entropy.types.core import RunContext
from entropy.utils.retry import RetryPolicy
from entropy.version import __version__

__all__ = ["app", "main"]

T = TypeVar("T")

app = typer.Typer(
    name="entropy",
    help="Observable entropy beacon (collect → generate → verify → index).",
    no_args_is_help=True,
    add_completion=False,
)


def _fail(phase: str, err: BaseException) -> "typer.Exit":
    typer.echo(f"{phase} failed: {err}", err=True)
    return typer.Exit(code=1)


def _run(phase: str, fn: Callable[[], T]) -> T:
    """Run one pipeline phase, mapping EntropyError to a one-line message and exit 1."""
    with elog.phase_scope(phase):
        try:
            return fn()
        except EntropyError as e:
            raise _fail(phase, e) from e


def _ctx(ctx: typer.Context) -> RunContext:
    run = ctx.obj
    if not isinstance(run, RunContext):  # pragma: no cover - callback always sets it
        raise typer.BadParameter("context not initialised")
    return run


def _echo_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2))


@app.callback()
def cli(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON or YAML config file (default: ENTROPY_* env)."),
    entropy_dir: Optional[str] = typer.Option(None, "--dir", help="Collection directory override."),
    round_file: Optional[str] = typer.Option(None, "--round-file", help="Current round file override."),
    previous_file: Optional[str] = typer.Option(None, "--previous-file", help="Previous round archive override."),
    index_dir: Optional[str] = typer.Option(None, "--index-dir", help="Index directory override."),
    iterations: Optional[int] = typer.Option(None, "--iterations", min=1, help="Slow-hash iteration override."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level."),
    log_json: Optional[bool] = typer.Option(None, "--log-json/--log-text", help="Force the log format."),
) -> None:
    """Resolve configuration once and capture this invocation's timestamp."""
    elog.configure(json=log_json, level=log_level)
    try:
        cfg = EntropyConfig.from_file(str(config)) if config else EntropyConfig.from_env()
        if entropy_dir:
            cfg.paths.entropy_dir = entropy_dir
        if round_file:
            cfg.paths.round_file = round_file
        if previous_file:
            cfg.paths.previous_file = previous_file
        if index_dir:
            cfg.paths.index_dir = index_dir
        if iterations:
            cfg.hashing.iterations = iterations
        cfg.validate()
    except EntropyError as e:
        raise _fail("config", e) from e
    ctx.obj = RunContext(config=cfg)


@app.command("collect")
def cmd_collect(
    ctx: typer.Context,
    sources: Optional[List[str]] = typer.Option(
        None, "--source", "-s", help=f"Connector to run (repeatable). One of: {', '.join(CONNECTORS)}."
    ),
) -> None:
    """Fetch every (or each selected) source into the collection directory."""
    run = _ctx(ctx)
    unknown = [s for s in sources or [] if s not in CONNECTORS]
    if unknown:
        raise typer.BadParameter(f"unknown source(s): {', '.join(unknown)}", param_hint="--source")
    report = _run("collect", lambda: collect_sources(run, sources or None))
    _echo_json({"collected": report.collected, "skipped": report.skipped})


@app.command("clean")
def cmd_clean(ctx: typer.Context) -> None:
    """Remove collected *.json source files."""
    run = _ctx(ctx)
    removed = _run("clean", lambda: clean_sources(run.config.paths))
    typer.echo(f"removed {len(removed)} file(s)")


@app.command("generate")
def cmd_generate(
    ctx: typer.Context,
    private_key: Optional[str] = typer.Option(
        None, "--private-key", envvar="ED25519_PRIVATE_KEY", show_default=False,
        help="Hex Ed25519 private key (defaults to $ED25519_PRIVATE_KEY).",
    ),
) -> None:
    """Archive the current round, then build, sign and persist the next one."""
    run = _ctx(ctx)
    rnd = _run("generate", lambda: generate_round(run, private_key))
    typer.echo(rnd.final_digest)


@app.command("verify")
def cmd_verify(
    ctx: typer.Context,
    public_key: Optional[str] = typer.Option(
        None, "--public-key", help="Hex Ed25519 public key (default: fetch from the configured pubkey URL)."
    ),
) -> None:
    """Verify the current round's signature and recompute it from the sources."""
    run = _ctx(ctx)
    rnd = _run("verify", lambda: verify_round(run, public_key=public_key))
    typer.echo(f"verified {rnd.final_digest}")


@app.command("index")
def cmd_index(
    ctx: typer.Context,
    commit_id: Optional[str] = typer.Option(
        None, "--commit-id", envvar="PARENT_COMMIT_ID", help="Parent commit id (defaults to $PARENT_COMMIT_ID)."
    ),
) -> None:
    """Write index/<digest>.json for the archived previous round."""
    run = _ctx(ctx)
    out = _run("index", lambda: index_previous_round(run.config.paths, commit_id))
    typer.echo(str(out) if out is not None else "no previous round to index")


@app.command("upload-kv")
def cmd_upload_kv(ctx: typer.Context) -> None:
    """Publish the current round to Cloudflare KV, then ping the heartbeat URL."""
    run = _ctx(ctx)
    cfg = run.config

    def _upload():
        data = read_json_optional(cfg.paths.round_path)
        if data is None:
            raise MissingArtifactError(path=str(cfg.paths.round_path))
        with make_client(cfg.network.timeout_s) as client:
            return upload_latest(data, cfg.kv, client, RetryPolicy.from_config(cfg.retry))

    result = _run("upload-kv", _upload)
    _echo_json({"uploaded": result.uploaded, "heartbeat": result.heartbeat, "error": result.error})


@app.command("keygen")
def cmd_keygen() -> None:
    """Print a new Ed25519 key pair (hex). Keep the private key secret."""
    sk, pk = generate_keypair()
    _echo_json({"privateKey": sk, "publicKey": pk})


@app.command("version")
def cmd_version() -> None:
    """Show the installed version."""
    typer.echo(__version__)


def main(argv: Optional[Sequence[str]] = None) -> None:  # pragma: no cover - thin wrapper
    """Entry-point for the `entropy` script and `python -m entropy.cli`."""
    try:
        app(args=list(argv) if argv is not None else None, prog_name="entropy")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    main()
