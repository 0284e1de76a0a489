# cli.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import typer
from click.core import ParameterSource

from .config import DEFAULT_CONFIG, EngineSettings
from .core import get_s3_client, is_empty
from .copy import copy_files
from .delete import delete_files
from .download import download_files
from .errors import MalformedLocationError, S3SluiceError, setup_logging
from .location import Location
from .move import move_files
from .naming import regex_renamer
from .utils import MatchSpec, NegativeRegex, read_yaml

app = typer.Typer(add_completion=False, help="Bulk, concurrent S3 file operations")

log = logging.getLogger("s3_sluice.cli")

# ---------------- Settings kept in Typer context ----------------
@dataclass
class Settings:
    verbose: bool = False
    aws_profile: Optional[str] = None
    aws_region: Optional[str] = None

# ---------------- Helpers ----------------
def _load_cfg(config_path: Optional[str]) -> dict:
    """
    Load YAML config if present, otherwise return {}.
    Never crash on missing/empty config.
    """
    path = config_path or DEFAULT_CONFIG
    try:
        cfg = read_yaml(path)
    except FileNotFoundError:
        return {}
    if not cfg:
        return {}
    return cfg

def _client_from_cfg(cfg: dict, settings: Settings):
    """
    Resolve AWS auth/region with priority:
    CLI flags -> ENV (handled inside boto3) -> YAML.
    """
    aws = (cfg.get("aws") or {}) if cfg else {}
    return get_s3_client(
        aws_profile=settings.aws_profile or aws.get("profile"),
        aws_access_key_id=aws.get("access_key_id"),
        aws_secret_access_key=aws.get("secret_access_key"),
        region_name=settings.aws_region or aws.get("region"),
        endpoint_url=aws.get("endpoint_url"),
        retries_max_attempts=aws.get("retries_max_attempts", 8),
        retries_mode=aws.get("retries_mode", "standard"),
        connect_timeout=aws.get("connect_timeout", 10),
        read_timeout=aws.get("read_timeout", 60),
    )

def _location(uri: Optional[str], flag: str) -> Location:
    try:
        return Location.parse(uri)
    except MalformedLocationError as e:
        raise typer.BadParameter(f"{e} (expected e.g. s3://bucket/dir/)", param_hint=flag)

def _match_spec(match: Optional[str], exclude: Optional[str]) -> MatchSpec:
    if match and exclude:
        raise typer.BadParameter("--match and --exclude are mutually exclusive")
    if exclude:
        return NegativeRegex(exclude)
    return match or ".+"

def _renamer(pattern: Optional[str], repl: Optional[str]) -> Optional[Callable[[str], str]]:
    if pattern is None:
        if repl is not None:
            raise typer.BadParameter("--rename-to needs --rename")
        return None
    return regex_renamer(pattern, repl or "")

def _flag(ctx: typer.Context, name: str, value: bool, section: dict) -> bool:
    """
    Resolve an on/off flag: given on the command line -> YAML section -> flag default.
    """
    if ctx.get_parameter_source(name) is ParameterSource.COMMANDLINE:
        return value
    return bool(section.get(name, value))

def _engine_opts(cfg: dict, concurrency, retries, retry_wait, progress: bool) -> Dict[str, Any]:
    es = EngineSettings.from_config(cfg).override(concurrency, retries, retry_wait)
    return {
        "concurrency": es.concurrency,
        "retries": es.retries,
        "retry_wait": es.retry_wait,
        "progress": progress,
        "keep_processed": False,
    }

def _run(action: Callable[..., Dict[str, Any]], *args: Any, **kwargs: Any) -> Dict[str, Any]:
    try:
        res = action(*args, **kwargs)
    except S3SluiceError as e:
        log.error("%s", e)
        raise typer.Exit(code=1)
    stats = res["stats"]
    typer.echo(f"{stats['operation'].capitalize()}: {stats['total']} object(s) from {stats['source']}")
    return res

# ---------------- Root options (global) ----------------
@app.callback()
def _root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    profile: Optional[str] = typer.Option(None, "--profile", help="AWS profile name"),
    region: Optional[str] = typer.Option(None, "--region", help="AWS region (e.g. us-east-1)"),
):
    """
    Set up global Settings and logging once.
    """
    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=level)

    ctx.obj = Settings(
        verbose=verbose,
        aws_profile=profile,
        aws_region=region,
    )

# ---------------- DOWNLOAD ----------------
@app.command("download")
def cmd_download(
    ctx: typer.Context,
    source: Optional[str] = typer.Option(None, "--from", help="Source URI (e.g. s3://bucket/prefix/)"),
    to: Optional[str] = typer.Option(None, "--to", help="Local destination directory"),
    match: Optional[str] = typer.Option(None, help="Regex a key must match (default .+)"),
    exclude: Optional[str] = typer.Option(None, help="Regex a key must NOT match"),
    flatten: bool = typer.Option(False, "--flatten/--no-flatten", help="Drop sub-folders below the source"),
    rename: Optional[str] = typer.Option(None, "--rename", help="Regex applied to each filename"),
    rename_to: Optional[str] = typer.Option(None, "--rename-to", help="Replacement for --rename"),
    concurrency: Optional[int] = typer.Option(None, help="Parallel workers"),
    retries: Optional[int] = typer.Option(None, help="Retries per object action"),
    retry_wait: Optional[float] = typer.Option(None, help="Seconds between retries"),
    progress: bool = typer.Option(False, "--progress/--no-progress", help="Show progress bar"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
):
    cfg = _load_cfg(config)
    dcfg = (cfg.get("download") or {}) if cfg else {}

    from_loc = _location(source or dcfg.get("from"), "--from")
    dst = to or dcfg.get("to")
    if not dst:
        raise typer.BadParameter("Provide --to or set download.to in config.yaml")

    s3 = _client_from_cfg(cfg, ctx.obj)
    _run(
        download_files,
        s3,
        from_loc,
        dst,
        match=_match_spec(match or dcfg.get("match"), exclude or dcfg.get("exclude")),
        alter_filename=_renamer(rename, rename_to),
        flatten=_flag(ctx, "flatten", flatten, dcfg),
        **_engine_opts(cfg, concurrency, retries, retry_wait, _flag(ctx, "progress", progress, dcfg)),
    )

# ---------------- COPY ----------------
@app.command("copy")
def cmd_copy(
    ctx: typer.Context,
    source: Optional[str] = typer.Option(None, "--from", help="Source URI"),
    target: Optional[str] = typer.Option(None, "--to", help="Destination URI"),
    match: Optional[str] = typer.Option(None, help="Regex a key must match (default .+)"),
    exclude: Optional[str] = typer.Option(None, help="Regex a key must NOT match"),
    flatten: bool = typer.Option(False, "--flatten/--no-flatten", help="Drop sub-folders below the source"),
    rename: Optional[str] = typer.Option(None, "--rename", help="Regex applied to each filename"),
    rename_to: Optional[str] = typer.Option(None, "--rename-to", help="Replacement for --rename"),
    concurrency: Optional[int] = typer.Option(None, help="Parallel workers"),
    retries: Optional[int] = typer.Option(None, help="Retries per object action"),
    retry_wait: Optional[float] = typer.Option(None, help="Seconds between retries"),
    progress: bool = typer.Option(False, "--progress/--no-progress", help="Show progress bar"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
):
    cfg = _load_cfg(config)
    ccfg = (cfg.get("copy") or {}) if cfg else {}

    from_loc = _location(source or ccfg.get("from"), "--from")
    to_loc = _location(target or ccfg.get("to"), "--to")

    s3 = _client_from_cfg(cfg, ctx.obj)
    _run(
        copy_files,
        s3,
        from_loc,
        to_loc,
        match=_match_spec(match or ccfg.get("match"), exclude or ccfg.get("exclude")),
        alter_filename=_renamer(rename, rename_to),
        flatten=_flag(ctx, "flatten", flatten, ccfg),
        **_engine_opts(cfg, concurrency, retries, retry_wait, _flag(ctx, "progress", progress, ccfg)),
    )

# ---------------- MOVE ----------------
@app.command("move")
def cmd_move(
    ctx: typer.Context,
    source: Optional[str] = typer.Option(None, "--from", help="Source URI"),
    target: Optional[str] = typer.Option(None, "--to", help="Destination URI"),
    match: Optional[str] = typer.Option(None, help="Regex a key must match (default .+)"),
    exclude: Optional[str] = typer.Option(None, help="Regex a key must NOT match"),
    flatten: bool = typer.Option(False, "--flatten/--no-flatten", help="Drop sub-folders below the source"),
    rename: Optional[str] = typer.Option(None, "--rename", help="Regex applied to each filename"),
    rename_to: Optional[str] = typer.Option(None, "--rename-to", help="Replacement for --rename"),
    concurrency: Optional[int] = typer.Option(None, help="Parallel workers"),
    retries: Optional[int] = typer.Option(None, help="Retries per object action"),
    retry_wait: Optional[float] = typer.Option(None, help="Seconds between retries"),
    progress: bool = typer.Option(False, "--progress/--no-progress", help="Show progress bar"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
):
    cfg = _load_cfg(config)
    mcfg = (cfg.get("move") or {}) if cfg else {}

    from_loc = _location(source or mcfg.get("from"), "--from")
    to_loc = _location(target or mcfg.get("to"), "--to")

    s3 = _client_from_cfg(cfg, ctx.obj)
    _run(
        move_files,
        s3,
        from_loc,
        to_loc,
        match=_match_spec(match or mcfg.get("match"), exclude or mcfg.get("exclude")),
        alter_filename=_renamer(rename, rename_to),
        flatten=_flag(ctx, "flatten", flatten, mcfg),
        **_engine_opts(cfg, concurrency, retries, retry_wait, _flag(ctx, "progress", progress, mcfg)),
    )

# ---------------- DELETE ----------------
@app.command("delete")
def cmd_delete(
    ctx: typer.Context,
    source: Optional[str] = typer.Option(None, "--from", help="URI to delete from"),
    match: Optional[str] = typer.Option(None, help="Regex a key must match (default .+)"),
    exclude: Optional[str] = typer.Option(None, help="Regex a key must NOT match"),
    concurrency: Optional[int] = typer.Option(None, help="Parallel workers"),
    retries: Optional[int] = typer.Option(None, help="Retries per object action"),
    retry_wait: Optional[float] = typer.Option(None, help="Seconds between retries"),
    progress: bool = typer.Option(False, "--progress/--no-progress", help="Show progress bar"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
):
    cfg = _load_cfg(config)
    xcfg = (cfg.get("delete") or {}) if cfg else {}

    from_loc = _location(source or xcfg.get("from"), "--from")

    s3 = _client_from_cfg(cfg, ctx.obj)
    _run(
        delete_files,
        s3,
        from_loc,
        match=_match_spec(match or xcfg.get("match"), exclude or xcfg.get("exclude")),
        **_engine_opts(cfg, concurrency, retries, retry_wait, _flag(ctx, "progress", progress, xcfg)),
    )

# ---------------- IS-EMPTY ----------------
@app.command("is-empty")
def cmd_is_empty(
    ctx: typer.Context,
    at: str = typer.Option(..., "--at", help="URI to check"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
):
    """Exit 0 if the location is empty, 1 otherwise."""
    cfg = _load_cfg(config)
    loc = _location(at, "--at")
    s3 = _client_from_cfg(cfg, ctx.obj)
    empty = is_empty(s3, loc)
    typer.echo(f"{loc}: {'empty' if empty else 'not empty'}")
    if not empty:
        raise typer.Exit(code=1)
