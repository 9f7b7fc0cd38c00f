import argparse
import logging
import sys

import utils.others as otherutils
from core.dispatcher import execute_tasks
from core.errors import ConfigError, ContentValidationError, InvalidDelayFormat, ShareError
from core.rules_engine import build_rules, evaluate_rules
from core.scheduler import ThreadScheduler
from definitions import DEFAULT_CONFIG_FILE
from socials.registry import build_registry
from utils.config import load_config, load_content

logger = logging.getLogger("sharebot")

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_PUBLISH_ERROR = 2


def parse_args(argv=None):
    # fmt: off
    parser = argparse.ArgumentParser(description="Route a content item to publishing destinations according to rules.")
    parser.add_argument("--config", type=str, default=str(DEFAULT_CONFIG_FILE), help="Path to the configuration file (default: config/config.yaml).")
    parser.add_argument("--content", type=str, required=True, help="Path to a YAML/JSON file describing the content item.")
    parser.add_argument("--dry-run", action="store_true", help="Evaluate rules and log the tasks without publishing.")
    parser.add_argument("--no-verify", dest="verify", action="store_false", default=None, help="Skip the adapter verify() gate.")
    parser.add_argument("--console", action="store_true", help="Write logs to console instead of a file.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    # fmt: on
    return parser.parse_args(argv)


def run(args) -> int:
    """
    Load config and content, evaluate the rules and execute the resulting tasks.

    Returns:
        int: Process exit code.
    """
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"sharebot: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    otherutils.setup_logging(config, console=args.console, debug=args.debug)
    otherutils.log_startup_info(args, config)

    script_cfg = config.get("script", {}) or {}
    verify = script_cfg.get("verify", True) if args.verify is None else args.verify
    max_delay = script_cfg.get("max_delay")

    try:
        content = load_content(args.content)
        registry = build_registry(config)
        rules = build_rules(config.get("rules", []) or [])
        tasks = evaluate_rules(content, rules, registry)
    except ContentValidationError as e:
        logger.error("Content rejected: %s", "; ".join(e.errors))
        return EXIT_INPUT_ERROR
    except (ConfigError, InvalidDelayFormat) as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_INPUT_ERROR

    logger.info("%d task(s) matched.", len(tasks))
    for task in tasks:
        logger.info("  TASK - rule=%r adapter=%s delay_ms=%s channel=%s", task.rule_name, task.adapter_id, task.delay_ms, task.channel)

    if args.dry_run:
        logger.info("[DRY-RUN] Not publishing.")
        return EXIT_OK

    scheduler = None
    if max_delay is not None:
        scheduler = ThreadScheduler(max_delay_ms=int(float(max_delay) * 1000))

    try:
        results = execute_tasks(tasks, verify=bool(verify), scheduler=scheduler)
    except ShareError as e:
        logger.exception("Publishing aborted: %s", e)
        return EXIT_PUBLISH_ERROR
    finally:
        if scheduler is not None:
            scheduler.close()

    for result in results:
        logger.info("  RESULT - rule=%r adapter=%s id=%s url=%s", result.rule_name, result.adapter_id, result.id, result.url)
    logger.info("Published %d of %d task(s).", len(results), len(tasks))
    return EXIT_OK


def main(argv=None):
    """Entry point for the sharebot command."""
    sys.exit(run(parse_args(argv)))


if __name__ == "__main__":
    main()
