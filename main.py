"""Entry point for the scout career story simulator.

Usage:
    python main.py --weeks 10                 # Simulate ten weeks on the current save
    python main.py --weeks 38 --dry-run       # Simulate a season without saving
    python main.py --reset --seed demo        # Start a fresh career with a new seed
    python main.py --weeks 5 --verbose        # Debug logging
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from game.config import CHOICE_POLICIES, load_config
from game.core import CareerSimulation, WeekSummary

_ESCALATION_MARKS = {0: " ", 1: "!", 2: "‼"}


def _setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=fmt, handlers=handlers)

    # Quiet down noisy libraries
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def _print_week(summary: WeekSummary) -> None:
    for variant, event in summary.events:
        mark = _ESCALATION_MARKS.get(event.escalation_level, "‼")
        click.echo(f"  {mark} S{event.season} W{event.week:02d} [{variant}] {event.title}")
    for choice in summary.choices:
        click.echo(
            f"      -> {choice.effect_tag} (rep {choice.reputation_delta:+d}, "
            f"fatigue {choice.fatigue_delta:+d}) {choice.message or ''}".rstrip()
        )


async def _run(sim: CareerSimulation, weeks: int) -> list[WeekSummary]:
    summaries = await sim.run(weeks)
    for summary in summaries:
        _print_week(summary)
    return summaries


@click.command()
@click.option("--weeks", type=click.IntRange(min=1), default=1, show_default=True, help="Weeks to simulate")
@click.option("--seed", default=None, help="Seed for a new career (ignored by an existing save)")
@click.option("--policy", type=click.Choice(CHOICE_POLICIES), default=None, help="How choices get made")
@click.option("--dry-run", is_flag=True, help="Simulate without writing the save or the journal")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.option("--config-dir", type=click.Path(), default=None, help="Config directory")
@click.option("--reset", is_flag=True, help="Delete the save file before running")
def main(
    weeks: int,
    seed: str | None,
    policy: str | None,
    dry_run: bool,
    verbose: bool,
    config_dir: str | None,
    reset: bool,
) -> None:
    """Scout career story simulator: seeded, replayable storylines and event chains."""

    cfg = load_config(config_dir)
    if seed is not None:
        cfg["_env"]["seed"] = seed
    if policy is not None:
        cfg.setdefault("simulation", {})["choice_policy"] = policy

    log_file = cfg.get("storage", {}).get("log_file")
    _setup_logging(verbose=verbose, log_file=log_file)

    if dry_run:
        click.echo("DRY RUN - nothing will be saved.\n")

    sim = CareerSimulation(config=cfg, dry_run=dry_run)
    if reset and not dry_run and sim.state_manager.reset():
        click.echo("Previous career deleted.")

    summaries = asyncio.run(_run(sim, weeks))

    events = sum(len(s.events) for s in summaries)
    choices = sum(len(s.choices) for s in summaries)
    last = summaries[-1]
    click.echo(
        f"\n  {weeks} week(s) simulated: {events} event(s), {choices} choice(s). "
        f"Reputation {last.reputation}, fatigue {last.fatigue}.\n"
    )


if __name__ == "__main__":
    main()
