#!/usr/bin/env python3
"""Standalone CLI to run the Zigma skill without a chat host.

Usage:
    python run_skill.py commands
    python run_skill.py command <user_id> <command> [key=value ...]
    python run_skill.py command alice alpha limit=3 min_edge=5
    python run_skill.py health
    python run_skill.py heartbeat
    python run_skill.py serve

User memory is kept in the configured database (SQLite by default,
PostgreSQL when DATABASE_URL is set). Heartbeat alerts go to Slack when
SLACK_WEBHOOK_URL is set.
"""

import logging
import sys
import time
from typing import Dict, List

from clients.oracle_client import OracleClient
from config import ConfigError, load_config
from db.database import DatabaseManager
from db.memory import DatabaseBackend
from notifications.slack import SlackNotifier
from scheduler.runner import SchedulerRunner
from skill.app import build_skill
from skill.base import SkillContext

logger = logging.getLogger(__name__)

USAGE = __doc__.split("User memory")[0].strip()


def parse_params(args: List[str]) -> Dict[str, str]:
    """Turn key=value arguments into a params dict."""
    params: Dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got '{arg}'")
        params[key] = value
    return params


def check_health(oracle: OracleClient) -> int:
    """Report whether the oracle API answers; exit code 0 when it does."""
    if oracle.health_check():
        print(f"Zigma oracle reachable at {oracle.base_url}")
        return 0
    print(f"Zigma oracle unreachable at {oracle.base_url}")
    return 1


def main(argv: List[str]) -> int:
    if not argv:
        print(USAGE)
        return 1

    try:
        config = load_config()
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        skill = build_skill(config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    if argv[0] == "health":
        return check_health(skill.oracle)

    db = DatabaseManager(db_path=config.db_path, database_url=config.database_url)
    backend = DatabaseBackend(db)
    slack = SlackNotifier(config.slack.webhook_url)
    runner = SchedulerRunner(skill, backend, config.scheduler, slack)

    action = argv[0]

    if action == "commands":
        for name, info in skill.commands.items():
            print(f"{name:12s} {info['description']}")
        return 0

    if action == "command":
        if len(argv) < 3:
            print(USAGE)
            return 1
        user_id, name = argv[1], argv[2]
        if name not in skill.registry.command_names:
            print(f"Unknown command: {name}")
            print(f"Available: {', '.join(skill.registry.command_names)}")
            return 1
        try:
            params = parse_params(argv[3:])
        except ValueError as e:
            print(e)
            return 1
        ctx = SkillContext(user_id=user_id, memory=backend.for_user(user_id),
                           notify=print, post=None)
        print(skill.handle(name, ctx, params))
        return 0

    if action == "heartbeat":
        results = runner.run_sweep()
        for result in results:
            logger.info("%s: %s %s", result.agent_name, result.status.value, result.summary)
        return 1 if any(r.error for r in results) else 0

    if action == "serve":
        runner.start()
        try:
            while True:
                time.sleep(60)
        except KeyboardInterrupt:
            runner.stop()
        return 0

    print(f"Unknown action: {action}")
    print(USAGE)
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
