#!/usr/bin/env python3
"""
Authenticity registry - scenario runner

Replays a YAML scenario (a list of {caller, method, args} steps) against a
registry engine built from config and prints one JSON result per step.

Usage:
    python run.py scenarios/luxury_watch.yaml
    python run.py scenario.yaml --config other.yaml   # Use another config
    python run.py scenario.yaml --run-id demo         # Log to logs/demo/events.jsonl
    python run.py scenario.yaml --strict              # Exit 1 if any step fails
    python run.py scenario.yaml --set registry.mint_fee=250  # Override config

The config path can also come from AUTHREG_CONFIG (read from .env too).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, TypedDict

import yaml
from dotenv import load_dotenv

from authreg.config import (
    DEFAULT_CONFIG_PATH,
    get_validated_config,
    load_config,
    set_config_value,
)
from authreg.registry import EventLogger, HeightClock, RegistryEngine, RegistryInterface

# Load environment variables
load_dotenv()


class ScenarioStep(TypedDict):
    """One request in a scenario file."""

    caller: str
    method: str
    args: list[Any]


def load_scenario(path: str | Path) -> list[ScenarioStep]:
    """Load and sanity-check scenario steps from a YAML file."""
    with open(path) as f:
        data: Any = yaml.safe_load(f) or {}
    raw_steps = data.get("steps", []) if isinstance(data, dict) else data
    if not isinstance(raw_steps, list):
        raise ValueError(f"{path}: 'steps' must be a list")

    steps: list[ScenarioStep] = []
    for i, raw in enumerate(raw_steps, start=1):
        if not isinstance(raw, dict) or "caller" not in raw or "method" not in raw:
            raise ValueError(f"{path}: step {i} needs 'caller' and 'method'")
        steps.append({
            "caller": str(raw["caller"]),
            "method": str(raw["method"]),
            "args": list(raw.get("args") or []),
        })
    return steps


def run_scenario(
    interface: RegistryInterface,
    steps: list[ScenarioStep],
    clock: HeightClock,
) -> list[dict[str, Any]]:
    """Run every step in order, advancing the height by one per step."""
    results: list[dict[str, Any]] = []
    for step in steps:
        clock.advance()
        result = interface.invoke(step["method"], step["args"], step["caller"])
        results.append({"height": clock(), **step, "result": result})
    return results


def parse_override(text: str) -> tuple[str, Any]:
    """Split a KEY=VALUE override; the value is parsed as YAML (so 250 is an int)."""
    key, sep, raw = text.partition("=")
    if not sep or not key.strip():
        raise ValueError(f"Override must look like KEY=VALUE, got {text!r}")
    return key.strip(), yaml.safe_load(raw)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Replay a registry scenario")
    parser.add_argument("scenario", help="YAML scenario file")
    parser.add_argument(
        "--config",
        default=os.environ.get("AUTHREG_CONFIG", str(DEFAULT_CONFIG_PATH)),
        help="Config file (default: $AUTHREG_CONFIG or config/config.yaml)",
    )
    parser.add_argument("--run-id", default=None, help="Write events under logs_dir/<run-id>/")
    parser.add_argument("--no-event-log", action="store_true", help="Skip the JSONL event log")
    parser.add_argument("--strict", action="store_true", help="Exit 1 if any step fails")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a config value, e.g. --set registry.mint_fee=250 (repeatable)",
    )
    args = parser.parse_args(argv)

    load_config(args.config)
    for override in args.overrides:
        set_config_value(*parse_override(override))
    config = get_validated_config()
    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    event_logger = None
    if not args.no_event_log:
        event_logger = EventLogger.from_config(config.logging, run_id=args.run_id)

    clock = HeightClock()
    engine = RegistryEngine.from_config(
        config.registry,
        get_height=clock,
        event_logger=event_logger,
    )
    interface = RegistryInterface(engine)

    results = run_scenario(interface, load_scenario(args.scenario), clock)
    for entry in results:
        print(json.dumps(entry, default=str))

    failed = sum(1 for entry in results if not entry["result"].get("success"))
    print(
        f"{len(results)} steps, {failed} failed, "
        f"{engine.get_total_minted()} live tokens",
        file=sys.stderr,
    )
    return 1 if args.strict and failed else 0


if __name__ == "__main__":
    sys.exit(main())
