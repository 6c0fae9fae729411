"""Command line entry-point for planning against an HTN domain."""

from __future__ import annotations

import importlib
import json
import logging
from pathlib import Path
from typing import Any, Optional, TextIO

import click

from .domain import Domain, DomainBuilder
from .errors import DomainValidationError
from .planner import BACKGROUND_TASKS_KEY, HTNPlanner, PlannerConfig, PlannerResult
from .utils.config import ConfigManager
from .utils.logging import setup_logging

logger = logging.getLogger("htn_planner.cli")

DEFAULT_DOMAIN = "htn_planner.demo:charger_domain"


def _load_domain(reference: str) -> Domain:
    """Resolve ``module:attribute`` to a Domain."""
    module_name, _, attr = reference.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"Expected module:attribute, got {reference!r}", param_hint="--domain")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"Cannot import {module_name!r}: {e}", param_hint="--domain")

    target: Any = getattr(module, attr, None)
    if target is None:
        raise click.BadParameter(f"{module_name!r} has no attribute {attr!r}", param_hint="--domain")

    if callable(target) and not isinstance(target, (Domain, DomainBuilder)):
        target = target()
    if isinstance(target, DomainBuilder):
        target = target.build_or_raise()
    if not isinstance(target, Domain):
        raise click.BadParameter(f"{reference!r} is not a Domain", param_hint="--domain")
    return target


def _workflow_name(domain: Domain, workflow: Any) -> str:
    return domain.workflow_alias(workflow) or getattr(workflow, "__name__", repr(workflow))


def _format_state(state: dict) -> dict:
    formatted = dict(state)
    handles = formatted.pop(BACKGROUND_TASKS_KEY, frozenset())
    formatted[BACKGROUND_TASKS_KEY] = sorted(str(getattr(h, "handle_id", h)) for h in handles)
    return formatted


def _format_output(result: PlannerResult, domain: Domain) -> dict:
    """Format planner result for JSON output."""
    output: dict[str, Any] = {
        "success": result.success,
        "plan": [
            {"workflow": _workflow_name(domain, step.workflow), "params": dict(step.params)}
            for step in result.plan
        ],
        "mtr": result.mtr.to_list(),
        "world_state": _format_state(result.world_state),
        "stats": {
            "tasks_processed": result.stats.tasks_processed,
            "background_dispatched": result.stats.background_dispatched,
            "elapsed_ms": result.stats.elapsed_ms,
        },
    }
    if result.stats.mtr_diverged_at is not None:
        output["stats"]["mtr_diverged_at"] = result.stats.mtr_diverged_at
    if result.error is not None:
        output["error"] = result.error.to_dict()
    if result.tree is not None:
        output["tree"] = result.tree.to_dict()
    return output


@click.command()
@click.option("--domain", "-d", "domain_ref", default=DEFAULT_DOMAIN, show_default=True,
              help="Domain as module:attribute (Domain, DomainBuilder, or factory)")
@click.option("--state", "-s", "state_file", type=click.File("r"), default=None,
              help="JSON file with the initial world state (defaults to {})")
@click.option("--root", "-r", "roots", multiple=True, help="Root task (repeatable)")
@click.option("--timeout", "-t", type=click.IntRange(min=1), default=None, help="Planning timeout in ms")
@click.option("--mtr", "previous_mtr", default=None, help="MTR of the current plan, e.g. 0,1,0")
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="YAML configuration file")
@click.option("--debug", is_flag=True, help="Include the diagnostic tree in the output")
@click.option("--output", "-o", type=click.File("w"), default="-", help="Output destination (defaults to stdout)")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def main(
    domain_ref: str,
    state_file: Optional[TextIO],
    roots: tuple[str, ...],
    timeout: Optional[int],
    previous_mtr: Optional[str],
    config_path: Optional[Path],
    debug: bool,
    output: TextIO,
    verbose: bool,
) -> None:
    """Plan against an HTN domain and print the plan as JSON."""

    config = ConfigManager(config_path)
    setup_logging(level=config.get("logging.level"), verbose=verbose)

    try:
        domain = _load_domain(domain_ref)
    except DomainValidationError as e:
        raise click.ClickException(f"Invalid domain: {e}")

    world_state: dict[str, Any] = {}
    if state_file is not None:
        try:
            world_state = json.load(state_file)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid world state JSON: {e}")
        if not isinstance(world_state, dict):
            raise click.ClickException("World state must be a JSON object")

    options: dict[str, Any] = {"debug": debug}
    if roots:
        options["root_tasks"] = list(roots)
    if timeout is not None:
        options["timeout"] = timeout
    if previous_mtr:
        try:
            options["current_plan_mtr"] = [int(c) for c in previous_mtr.split(",")]
        except ValueError:
            raise click.BadParameter(f"Invalid MTR {previous_mtr!r}", param_hint="--mtr")

    planner = HTNPlanner(PlannerConfig.from_config_manager(config))
    try:
        result = planner.plan(domain, world_state, **options)
    except DomainValidationError as e:
        raise click.ClickException(str(e))
    finally:
        # Let background workflows finish before the process exits
        planner.dispatcher.shutdown(wait=True)

    if verbose:
        logger.info(f"Planned {len(result.plan)} step(s) in {result.stats.elapsed_ms}ms")

    json.dump(_format_output(result, domain), output, indent=2, default=str)
    output.write("\n")

    if not result.success:
        raise click.ClickException(f"{result.error.kind.value}: {result.error.message}")


if __name__ == "__main__":  # pragma: no cover
    main()
