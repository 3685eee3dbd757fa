#!/usr/bin/env python3
"""
Job Submitter - Main Entry Point

Runs the submission engine over one or more recruiting platforms.

Usage:
    # Run every enabled platform from config.yaml
    python main.py run all --config config.yaml

    # Run selected platforms
    python main.py run liepin zhilian

    # Check environment and run config
    python main.py check --config config.yaml
"""

import sys
import asyncio
import argparse
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def check_environment(config_path: str) -> bool:
    """Validate settings and the run config."""
    from core.config import get_config, load_run_config

    app_config = get_config()
    problems = app_config.validate()
    try:
        run_configs = load_run_config(config_path, app_config)
    except ValueError as e:
        problems.append(str(e))
        run_configs = {}

    if not run_configs:
        problems.append(f"No platforms configured in {config_path}")
    for pid, cfg in run_configs.items():
        if cfg.enabled and not cfg.keywords:
            problems.append(f"{pid}: no keywords configured")

    if problems:
        print("❌ Configuration problems:")
        for problem in problems:
            print(f"  - {problem}")
        return False

    print(f"✅ Configuration OK ({', '.join(run_configs)})")
    return True


async def run_platforms(platforms, config_path: str) -> list:
    """Run the selected platforms one after another."""
    from core.browser import SessionRegistry
    from core.config import get_config, load_run_config
    from core.runner import Orchestrator
    from monitoring.notifications import NotificationManager

    app_config = get_config()
    run_configs = load_run_config(config_path, app_config)
    registry = SessionRegistry(
        headless=app_config.HEADLESS,
        slow_mo_ms=app_config.SLOW_MO_MS,
        default_timeout_ms=app_config.BROWSER_TIMEOUT_MS,
    )
    orchestrator = Orchestrator(registry, app_config, NotificationManager())
    return await orchestrator.run(run_configs, platforms)


def main():
    """Main entry point."""
    load_dotenv()

    from core.config import get_config
    from core.logging_config import setup_logging

    app_config = get_config()
    setup_logging(None, level=app_config.LOG_LEVEL, log_dir=app_config.LOG_DIR)

    parser = argparse.ArgumentParser(
        description="Job Submitter - multi-platform submission automation"
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    run_parser = subparsers.add_parser('run', help='Run platforms')
    run_parser.add_argument('platforms', nargs='*', default=['all'], help="Platform ids or 'all'")
    run_parser.add_argument('--config', default=app_config.RUN_CONFIG_PATH, help='Path to run config YAML')

    check_parser = subparsers.add_parser('check', help='Validate configuration')
    check_parser.add_argument('--config', default=app_config.RUN_CONFIG_PATH, help='Path to run config YAML')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.command == 'check':
        sys.exit(0 if check_environment(args.config) else 1)

    elif args.command == 'run':
        try:
            results = asyncio.run(run_platforms(args.platforms, args.config))
        except (KeyError, ValueError) as e:
            logger.error(str(e))
            sys.exit(2)

        for result in results:
            mark = "✅" if result.success else "❌"
            print(
                f"{mark} {result.platform}: {result.submitted} submitted, {result.skipped} skipped, "
                f"{result.failed} failed" + (f" ({result.error})" if result.error else "")
            )
        if results and not any(r.success for r in results):
            sys.exit(1)


if __name__ == "__main__":
    main()
