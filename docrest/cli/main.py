from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, List, Optional

from docrest.core.attributes import (
    AttributeBuilder,
    BuilderConfig,
    SchemaError,
    SchemaResolver,
    combine_masks,
    count_fields,
    excluded_paths,
    mask_from_paths,
    node_depth,
)
from docrest.core.attributes.schema import describe
from docrest.core.model import load_model_definition
from docrest.utils.json_safe import dumps

log = logging.getLogger("docrest.cli")


def _print_json(obj: Any) -> None:
    """Print JSON to stdout."""
    print(dumps(obj))


def _read_json(path: str) -> Any:
    """Read a JSON file."""

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _read_optional(path: Optional[str]) -> Any:
    return _read_json(path) if path else None


def _config(args: argparse.Namespace) -> BuilderConfig:
    """Builder config from the environment, overridden by flags."""

    base = BuilderConfig.from_env()
    max_depth = getattr(args, "max_depth", None)
    return BuilderConfig(
        max_depth=int(max_depth) if max_depth is not None else base.max_depth,
        log_fallbacks=bool(getattr(args, "log_fallbacks", False)) or base.log_fallbacks,
    )


def cmd_check_schema(args: argparse.Namespace) -> int:
    """Compile a model definition and print a short summary.

    Exit code 2 (via main) if the schema is misconfigured.
    """

    definition = load_model_definition(args.definition)
    node = definition.compile(_config(args))
    _print_json(
        {
            "ok": True,
            "name": definition.name,
            "collection_name": definition.collection_name or definition.name.lower(),
            "field_count": count_fields(node),
            "max_depth": node_depth(node),
            "fields": {key: describe(child) for key, child in node.fields.items()},
            "read_only": excluded_paths(definition.read_only_attributes),
            "hidden": excluded_paths(definition.hidden_attributes),
        }
    )
    return 0


def _model_class(args: argparse.Namespace):
    definition = load_model_definition(args.definition)
    return definition.to_model_class(resolver=SchemaResolver(config=_config(args)))


def cmd_ingest(args: argparse.Namespace) -> int:
    """Apply a request body to a record (read-only keys are kept)."""

    model_cls = _model_class(args)
    model = model_cls(_read_optional(args.attrs))
    model.set_from_request(_read_json(args.body))

    if args.show_changes:
        _print_json(
            {
                "attributes": model.to_json(),
                "changed": model.changed_from_request,
            }
        )
    else:
        _print_json(model.to_json())
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    """Render a stored record for a client (hidden keys removed)."""

    model_cls = _model_class(args)
    model = model_cls.from_document(_read_json(args.attrs))
    _print_json(model.render())
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    """Run the attribute builder on raw inputs."""

    builder = AttributeBuilder(config=_config(args))
    mask = combine_masks(_read_optional(args.mask), mask_from_paths(args.exclude or []))
    result = builder.build(
        _read_json(args.schema),
        _read_optional(args.defaults),
        _read_optional(args.json),
        _read_optional(args.attrs),
        mask,
    )
    _print_json(result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    p = argparse.ArgumentParser(prog="docrest", description="docrest attribute tools")
    p.add_argument(
        "--log-level",
        default=os.environ.get("DOCREST_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $DOCREST_LOG_LEVEL or WARNING)",
    )
    p.add_argument(
        "--log-fallbacks",
        action="store_true",
        help="Log every leaf that fell back to attrs/defaults (DEBUG level)",
    )
    p.add_argument("--max-depth", type=int, default=None, help="Max schema nesting depth")
    sub = p.add_subparsers(dest="cmd", required=True)

    cs = sub.add_parser("check-schema", help="Compile a model definition and summarize it")
    cs.add_argument("definition", help="Path to model definition JSON")
    cs.set_defaults(func=cmd_check_schema)

    ig = sub.add_parser("ingest", help="Apply a request body to a record")
    ig.add_argument("definition", help="Path to model definition JSON")
    ig.add_argument("--body", required=True, help="Request body JSON file")
    ig.add_argument("--attrs", default=None, help="Current record attributes JSON file")
    ig.add_argument(
        "--show-changes", action="store_true", help="Also print the keys changed by the body"
    )
    ig.set_defaults(func=cmd_ingest)

    rd = sub.add_parser("render", help="Render a stored record for a client")
    rd.add_argument("definition", help="Path to model definition JSON")
    rd.add_argument("--attrs", required=True, help="Stored document JSON file")
    rd.set_defaults(func=cmd_render)

    bd = sub.add_parser("build", help="Run the attribute builder on raw JSON inputs")
    bd.add_argument("--schema", required=True, help="Schema JSON file")
    bd.add_argument("--defaults", default=None, help="Defaults JSON file")
    bd.add_argument("--json", default=None, help="Incoming payload JSON file")
    bd.add_argument("--attrs", default=None, help="Current attributes JSON file")
    bd.add_argument("--mask", default=None, help="Exclusion mask JSON file")
    bd.add_argument(
        "--exclude", action="append", default=None, help="Dotted key path to exclude (repeatable)"
    )
    bd.set_defaults(func=cmd_build)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = str(args.log_level).upper()
    if args.log_fallbacks:
        level = "DEBUG"
    if not isinstance(logging.getLevelName(level), int):
        level = "WARNING"
    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s")

    try:
        return int(args.func(args))
    except SchemaError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as e:
        log.debug("cli_failed", extra={"cmd": args.cmd}, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
