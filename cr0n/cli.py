"""Command line interface for cr0n."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from cr0n.config import get_config, resolve_settings
from cr0n.constants import ACTION_BUCKETS, DEFAULT_LEARNING_CONFIG, DEFAULT_WEIGHTS, MODEL_DEFAULTS, default_model_weights
from cr0n.errors import Cr0nError
from cr0n.federation.registry import ProviderRegistry
from cr0n.federation.router import Router
from cr0n.federation.types import BusinessContext
from cr0n.pipeline import Cr0nEngine
from cr0n.types import ActionRecord, PageData


def _print(obj: Any) -> None:
    print(json.dumps(obj, indent=2))


def _load_json(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).read_text())


def _load_state(args: argparse.Namespace) -> dict:
    state = _load_json(args.input)
    if isinstance(state, list):
        state = {"pages": state}
    if getattr(args, "weights", None):
        state["weights"] = _load_json(args.weights)
    return state


def _engine(state: dict) -> Cr0nEngine:
    config = get_config()
    return Cr0nEngine.from_config(
        config,
        weights=state.get("weights"),
        model_weights=state.get("model_weights"),
        learning_cycles=int(state.get("learning_cycles", 0)),
    )


def cmd_analyze(args: argparse.Namespace) -> None:
    state = _load_state(args)
    engine = _engine(state)
    pages = [PageData.from_dict(item) for item in state.get("pages", [])]
    plan = engine.analyze(pages, site_id=args.site_id)
    _print(plan.to_dict())


def cmd_cycle(args: argparse.Namespace) -> None:
    state = _load_state(args)
    engine = _engine(state)
    pages = [PageData.from_dict(item) for item in state.get("pages", [])]
    actions = [ActionRecord.from_dict(item) for item in state.get("actions", [])]
    context = BusinessContext.from_dict(state.get("context"))
    result = asyncio.run(engine.run_cycle(pages, actions, context=context, site_id=args.site_id))
    payload = result.to_dict()
    payload["learning_cycles"] = engine.weight_adjuster.learning_cycles
    if args.output:
        next_state = {
            "pages": state.get("pages", []),
            "actions": payload["actions"],
            "weights": payload["weights"],
            "model_weights": payload["model_weights"],
            "learning_cycles": payload["learning_cycles"],
        }
        if state.get("context"):
            next_state["context"] = state["context"]
        Path(args.output).write_text(json.dumps(next_state, indent=2))
    _print(payload)


def cmd_weights(args: argparse.Namespace) -> None:
    if args.weights_cmd == "show" and args.state:
        state = _load_json(args.state)
        settings = resolve_settings(get_config(), state.get("weights"), state.get("model_weights"))
        _print({"weights": settings.weights, "model_weights": settings.model_weights})
        return
    _print(
        {
            "weights": dict(DEFAULT_WEIGHTS),
            "learning": dict(DEFAULT_LEARNING_CONFIG),
            "model_weights": default_model_weights(),
        }
    )


def cmd_models(args: argparse.Namespace) -> None:
    config = get_config()
    registry = ProviderRegistry.from_config(config.models)
    if args.models_cmd == "route":
        settings = resolve_settings(config)
        router = Router(registry, settings.model_weights)
        _print(router.route(args.bucket).to_dict())
        return
    _print(
        {
            "models": [
                {
                    "id": provider_id,
                    "model": (config.models.get(provider_id) or {}).get("model", defaults["model"]),
                    "provider": defaults["provider"],
                    "available": registry.has(provider_id),
                }
                for provider_id, defaults in MODEL_DEFAULTS.items()
            ],
            "available": registry.count(),
        }
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cr0n")
    parser.add_argument("--verbose", "-v", action="store_true")
    sub = parser.add_subparsers(dest="command")

    analyze = sub.add_parser("analyze", help="Score and bucket pages into a daily plan")
    analyze.add_argument("--input", required=True, help="JSON file with pages (or a state object); - for stdin")
    analyze.add_argument("--weights", help="JSON file with content weights")
    analyze.add_argument("--site-id")

    cycle = sub.add_parser("cycle", help="Evaluate outcomes, learn, analyze and federate")
    cycle.add_argument("--input", required=True, help="JSON state file; - for stdin")
    cycle.add_argument("--weights", help="JSON file with content weights")
    cycle.add_argument("--output", help="Write the updated state here")
    cycle.add_argument("--site-id")

    weights = sub.add_parser("weights")
    weights_sub = weights.add_subparsers(dest="weights_cmd")
    weights_sub.add_parser("defaults")
    show = weights_sub.add_parser("show")
    show.add_argument("--state")

    models = sub.add_parser("models")
    models_sub = models.add_subparsers(dest="models_cmd")
    models_sub.add_parser("list")
    route = models_sub.add_parser("route")
    route.add_argument("--bucket", required=True, choices=ACTION_BUCKETS)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        if args.command == "analyze":
            cmd_analyze(args)
        elif args.command == "cycle":
            cmd_cycle(args)
        elif args.command == "weights":
            cmd_weights(args)
        elif args.command == "models":
            cmd_models(args)
        else:
            parser.print_help()
    except Cr0nError as exc:
        _print({"ok": False, "error": str(exc)})
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
