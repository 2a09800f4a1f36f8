"""
Command line for publishing GRC-20 edits.

Usage:
    python -m grc20_publisher.cli recipes
    python -m grc20_publisher.cli ops <recipe>
    python -m grc20_publisher.cli run <recipe> [--space ID] [--network NET] [--keyring PATH] [--manual]

The signing key is read from PRIVATE_KEY (process environment or .env).
Without it, `run` prints the calldata for manual submission.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from .graph import unresolved_references
from .ipfs import encode_edit
from .keyring import SpaceBinding, load_keyring
from .pipeline import run_recipe
from .recipes import build_recipe, get_recipe, list_recipes
from .schema import ExecutionContext, Network


# =============================================================================
# Commands
# =============================================================================

def cmd_recipes(args: argparse.Namespace) -> int:
    """List available recipes with their default target."""
    for recipe in list_recipes():
        print(f"  {recipe.name:<10} {recipe.network.value:<8} {recipe.space_id}  {recipe.description}")
    return 0


def cmd_ops(args: argparse.Namespace) -> int:
    """Build a recipe's edit and print it without publishing."""
    try:
        edit = build_recipe(args.recipe)
    except KeyError as e:
        print(f"✗ {e.args[0]}", file=sys.stderr)
        return 1

    print(json.dumps(json.loads(encode_edit(edit)), indent=2))

    unresolved = unresolved_references(edit.ops)
    if unresolved:
        print(f"⚠️  References not created in this edit: {', '.join(unresolved)}", file=sys.stderr)
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run the full pipeline for a recipe."""
    try:
        recipe = get_recipe(args.recipe)
    except KeyError as e:
        print(f"✗ {e.args[0]}", file=sys.stderr)
        return 1

    try:
        keyring = load_keyring(args.keyring)
    except ValueError as e:
        print(f"✗ Invalid keyring: {e}", file=sys.stderr)
        return 1

    if args.manual:
        keyring = keyring.without_signer()

    space = None
    if args.space or args.network:
        default = keyring.get_default_space()
        space = SpaceBinding(
            space_id=args.space or (default.space_id if default else recipe.space_id),
            network=args.network or (default.network if default else recipe.network),
        )

    ctx = ExecutionContext(output_sink=print)
    result = run_recipe(recipe.name, keyring, space=space, ctx=ctx)

    if not result.ok:
        print(f"✗ {result.error_message}", file=sys.stderr)
        return 1

    print(json.dumps(result.data, indent=2))
    return 0


# =============================================================================
# Entry point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grc20-publisher",
        description="Publish knowledge-graph edits to a GRC-20 space",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    recipes_parser = subparsers.add_parser("recipes", help="List available recipes")
    recipes_parser.set_defaults(func=cmd_recipes)

    ops_parser = subparsers.add_parser("ops", help="Print a recipe's edit without publishing")
    ops_parser.add_argument("recipe", help="Recipe name")
    ops_parser.set_defaults(func=cmd_ops)

    run_parser = subparsers.add_parser("run", help="Publish a recipe and submit its calldata")
    run_parser.add_argument("recipe", help="Recipe name")
    run_parser.add_argument("--space", help="Target space id")
    run_parser.add_argument(
        "--network",
        choices=[n.value for n in Network],
        help="Target network",
    )
    run_parser.add_argument("--keyring", help="Path to keyring.toml")
    run_parser.add_argument(
        "--manual",
        action="store_true",
        help="Do not sign; print calldata for manual submission",
    )
    run_parser.set_defaults(func=cmd_run)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
