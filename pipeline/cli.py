"""CLI: resolve containers, remap them into target slots, scope design rules, ask for a layout strategy."""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv

from core.design.loader import load_design, load_template
from core.design.template import create_container_context, find_target_container, sorted_containers
from core.knowledge.scoper import GLOBAL_SCOPE, format_scope, scope_rules
from core.remap.geometry import compute_override_metrics, layer_audit
from core.remap.settings import load_remap_settings
from core.resolver.resolver import resolve_channels
from core.strategy.canonical import load_feedback, load_strategy
from core.strategy.merger import build_effective_strategy
from core.strategy.openai_strategist import DEFAULT_STRATEGY_MODEL, request_layout_strategy
from pipeline.graph import run_remap_pipeline

# Load .env from project root so OPENAI_API_KEY etc. are set
_project_root = Path(__file__).resolve().parent.parent
load_dotenv(_project_root / ".env")

app = typer.Typer(add_completion=False)


def _configure_logging(verbose: bool, log_file: str | None = None) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    env_level = os.environ.get("LOG_LEVEL", "").upper()
    if env_level == "DEBUG":
        level = logging.DEBUG
    elif env_level == "WARNING":
        level = logging.WARNING
    elif env_level == "ERROR":
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")
    if log_file:
        _add_file_handler(Path(log_file), level)


def _add_file_handler(path: Path, level: int) -> None:
    """Mirror root logging into a rotating file; a second call for the same file is a no-op."""
    root_logger = logging.getLogger()
    if any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == str(path.resolve()) for h in root_logger.handlers
    ):
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s:%(lineno)d - %(message)s"))
    root_logger.addHandler(handler)
    if root_logger.level > level:
        root_logger.setLevel(level)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Also write logs to this rotating log file"),
) -> None:
    """Layout remapper: resolve design containers and remap them into template slots."""
    _configure_logging(verbose, log_file)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _write_or_echo(data: Any, out: str | None) -> None:
    if out:
        out_path = Path(out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        typer.echo(f"Wrote: {out_path}")
    else:
        _echo_json(data)


@app.command()
def resolve(
    template_path: str = typer.Argument(..., help="Path to template JSON"),
    design_path: str = typer.Argument(..., help="Path to decoded design JSON"),
    container: list[str] = typer.Option(None, "--container", "-c", help="Container to resolve (repeatable). Default: all, alphabetically."),
) -> None:
    """Resolve template containers to design groups. Prints one channel state per container."""
    try:
        template = load_template(template_path)
        design = load_design(design_path)
        names = list(container) if container else [c.name for c in sorted_containers(template)]
        channels = resolve_channels(template, design.layers, names)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Resolve failed: {e}", err=True)
        raise typer.Exit(1)
    _echo_json([ch.model_dump(mode="json", exclude={"resolved_context"}) for ch in channels])


@app.command()
def remap(
    template_path: str = typer.Argument(..., help="Path to source template JSON"),
    design_path: str = typer.Argument(..., help="Path to decoded design JSON"),
    container: str = typer.Argument(..., help="Source container name"),
    target_template: str | None = typer.Option(None, "--target-template", help="Path to target template JSON (default: source template)"),
    target: str | None = typer.Option(None, "--target", "-t", help="Target slot handle: name, slot-bounds-<name> or target-out-<n> (default: container name)"),
    strategy_path: str | None = typer.Option(None, "--strategy", "-s", help="Path to AI layout strategy JSON"),
    feedback_path: str | None = typer.Option(None, "--feedback", "-f", help="Path to user feedback JSON"),
    no_generation: bool = typer.Option(False, "--no-generation", help="Mute generative fill for this run"),
    settings_path: str | None = typer.Option(None, "--settings", help="Path to remap settings JSON (default: configs/remap/settings.json)"),
    metrics: bool = typer.Option(False, "--metrics", help="Include override metrics and a layer audit"),
    out: str | None = typer.Option(None, "--out", "-o", help="Write the payload JSON here instead of stdout"),
) -> None:
    """Resolve CONTAINER in the design and remap it into the target slot. Prints the TransformedPayload."""
    try:
        template = load_template(template_path)
        design = load_design(design_path)
        tgt_template = load_template(target_template) if target_template else template
        strategy = load_strategy(strategy_path) if strategy_path else None
        feedback = load_feedback(feedback_path) if feedback_path else None
        settings = load_remap_settings(settings_path)
        final = run_remap_pipeline(
            template,
            design.layers,
            container,
            target_template=tgt_template,
            target_handle=target,
            strategy=strategy,
            feedback=feedback,
            generation_allowed=not no_generation,
            settings=settings,
        )
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Remap failed: {e}", err=True)
        raise typer.Exit(1)

    if final.get("error"):
        typer.echo(f"Remap failed: {final['error']}", err=True)
        raise typer.Exit(1)

    payload = final["payload"]
    data: dict[str, Any] = {"payload": payload.model_dump(mode="json")}
    if metrics:
        context = final["resolved_context"]
        target_container = find_target_container(tgt_template, target or container)
        effective = build_effective_strategy(strategy, feedback)
        data["override_metrics"] = [
            m.model_dump(mode="json")
            for m in compute_override_metrics(context.layers, context.container.bounds, target_container.bounds, effective)
        ]
        data["layer_audit"] = layer_audit(payload.layers).model_dump(mode="json")
    _write_or_echo(data, out)


@app.command()
def scope(
    rules_path: str = typer.Argument(..., help="Path to a text file of design rules, one per line"),
    template_path: str | None = typer.Option(None, "--template", help="Template JSON; tags are matched against its container names"),
    show: str | None = typer.Option(None, "--show", help="Print the copy-ready protocol block of this scope only"),
) -> None:
    """Bucket design rules per container and globally. Prints the scopes as JSON."""
    path = Path(rules_path)
    if not path.is_file():
        typer.echo(f"Not a file: {path}", err=True)
        raise typer.Exit(1)
    try:
        names = [c.name for c in load_template(template_path).containers] if template_path else None
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Scope failed: {e}", err=True)
        raise typer.Exit(1)

    scopes = scope_rules(path.read_text(encoding="utf-8"), names)
    if show is not None:
        if show not in scopes.scopes:
            typer.echo(f"Unknown scope: {show}. Available: {', '.join(scopes.available_scopes)}", err=True)
            raise typer.Exit(1)
        typer.echo(format_scope(show, scopes.rules_for(show)))
        return
    _echo_json(scopes.model_dump(mode="json"))


@app.command()
def strategy(
    template_path: str = typer.Argument(..., help="Path to source template JSON"),
    design_path: str = typer.Argument(..., help="Path to decoded design JSON"),
    container: str = typer.Argument(..., help="Source container name"),
    target_template: str | None = typer.Option(None, "--target-template", help="Path to target template JSON (default: source template)"),
    target: str | None = typer.Option(None, "--target", "-t", help="Target slot handle (default: container name)"),
    rules_path: str | None = typer.Option(None, "--rules", help="Design rules file; global and container-scoped rules are sent"),
    model: str = typer.Option(DEFAULT_STRATEGY_MODEL, "--model", "-m", help="OpenAI chat model"),
    out: str | None = typer.Option(None, "--out", "-o", help="Write the strategy JSON here instead of stdout"),
) -> None:
    """Ask an OpenAI model for a layout strategy for CONTAINER. Prints the validated strategy."""
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        typer.echo("OPENAI_API_KEY not set. Set it in .env or the environment.", err=True)
        raise typer.Exit(1)
    try:
        template = load_template(template_path)
        design = load_design(design_path)
        tgt_template = load_template(target_template) if target_template else template
        context = create_container_context(template, container)
        if context is None:
            raise ValueError(f"Invalid Container Ref: {container!r}")
        target_container = find_target_container(tgt_template, target or container)
        if target_container is None:
            raise ValueError(f"Target slot not found: {target or container!r}")
        channel = resolve_channels(template, design.layers, [context.container_name])[0]
        if channel.resolved_context is None:
            raise ValueError(f"{channel.debug_code}: {channel.message}")

        rules: list[str] = []
        if rules_path:
            scopes = scope_rules(Path(rules_path).read_text(encoding="utf-8"), [c.name for c in template.containers])
            rules = scopes.rules_for(GLOBAL_SCOPE) + scopes.rules_for(context.container_name)

        result = request_layout_strategy(
            context.container_name,
            channel.resolved_context.layers,
            context.bounds,
            target_container.bounds,
            rules=rules,
            model=model,
            api_key=api_key,
        )
    except Exception as e:
        typer.echo(f"Strategy failed: {e}", err=True)
        raise typer.Exit(1)

    _write_or_echo(result["strategy"].model_dump(mode="json"), out)
    if result.get("usage"):
        typer.echo(f"Usage: {result['usage']}", err=True)


if __name__ == "__main__":
    app()
