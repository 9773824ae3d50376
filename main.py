#!/usr/bin/env python3
"""revset-explorer CLI.

Explore a jj repository's commit graph with a view query and a selection
query, either once from the command line or interactively in the browser.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from explorer.config import ConfigError, default_schema_path, load_config
from explorer.engine import EngineError
from explorer.repo import JjRepository, JjRepositoryError
from explorer.report import render_dot, render_text_report, snapshot_to_dict
from explorer.sample import DEFAULT_SAMPLE_DIR, SampleRepositoryError, create_sample_repo
from explorer.state import ExplorerState


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="revset-explorer",
        description="Explore a jj commit graph through view and selection queries",
    )

    parser.add_argument(
        "-R",
        "--repository",
        default=None,
        help="Path to the jj repository to explore (default: config value or .)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to an explorer YAML config",
    )
    parser.add_argument(
        "--schema",
        default=str(default_schema_path()),
        help="Path to schema.json",
    )
    parser.add_argument(
        "--view",
        default=None,
        help="Initial view query",
    )
    parser.add_argument(
        "--select",
        default=None,
        help="Initial selection query",
    )
    parser.add_argument(
        "--max-nodes",
        type=int,
        default=None,
        help="Maximum number of commits to display",
    )
    parser.add_argument(
        "--format",
        choices=("text", "dot", "json"),
        default="text",
        help="Output format when printing a snapshot",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the interactive explorer in the browser",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Address to serve on",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to serve on",
    )
    parser.add_argument(
        "--create-sample",
        nargs="?",
        const=str(DEFAULT_SAMPLE_DIR),
        default=None,
        metavar="DIR",
        help=f'Generate a sample repository to explore (default: "{DEFAULT_SAMPLE_DIR}")',
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.create_sample is not None:
            sample_path = create_sample_repo(Path(args.create_sample))
            print(
                f'Sample repository created in "{sample_path}". '
                f"Run the following command to explore it:\nrevset-explorer -R {sample_path} --serve"
            )
            return 0

        config_path = Path(args.config).expanduser().resolve() if args.config else None
        schema_path = Path(args.schema).expanduser().resolve()

        cfg = load_config(config_path, schema_path).with_overrides(
            repository=Path(args.repository) if args.repository else None,
            view=args.view,
            selection=args.select,
            max_nodes=args.max_nodes,
        )
        repo_path = cfg.repository.expanduser().resolve()

        repo = JjRepository(
            repo_path,
            jj_command=cfg.jj_command,
            revset_aliases=cfg.revset_aliases,
        )
        repo.ensure_jj_repository()

        if args.serve:
            from user_ui.server import run_server

            print(f"Using repository in {repo_path}", file=sys.stderr)
            run_server(cfg, repo, host=args.host, port=int(args.port))
            return 0

        state = ExplorerState.from_config(cfg, repo)
        state.tick()
        snapshot = state.snapshot()

        if args.format == "dot":
            print(render_dot(snapshot))
        elif args.format == "json":
            print(json.dumps(snapshot_to_dict(snapshot), indent=2))
        else:
            print(render_text_report(snapshot))

        return 1 if snapshot.view_error else 0

    except (ConfigError, JjRepositoryError, SampleRepositoryError, EngineError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
