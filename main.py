"""
Entry point for the WordPress to Contentful migration tool.

Usage::

    python main.py all
    python main.py download transform
    python main.py assets --config config/migration_config.json
    python main.py delete
"""

import argparse
import sys

from wp_contentful.config import DEFAULT_CONFIG_FILE, ConfigError
from wp_contentful.migration_tool import STEPS, ContentfulMigrationTool
from wp_contentful.pipeline import IndexBuildError
from wp_contentful.stages import UPLOAD_STAGES
from wp_contentful.utils.pre_flight_checks import PreFlightCheckError


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Migrate a WordPress blog into Contentful")
    p.add_argument(
        "steps",
        nargs="+",
        choices=[*STEPS, "delete", "all"],
        help="Steps to run, in order ('all' runs every step except 'delete')",
    )
    p.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="Path of the JSON configuration file")
    p.add_argument("--dry-run", action="store_true", help="Do not write anything to Contentful")
    p.add_argument("--skip-checks", action="store_true", help="Skip the pre-flight checks")
    return p.parse_args(argv)


def main(argv=None) -> int:
    """
    Main function to run the WordPress to Contentful migration tool.
    """
    args = parse_args(argv)
    tool = ContentfulMigrationTool(config_file=args.config)
    if args.dry_run:
        tool.config["migration"]["dry_run"] = True
    tool.setup_logging()
    tool.log_message("Starting WordPress to Contentful migration.")

    steps = STEPS if "all" in args.steps else args.steps
    touches_contentful = any(step in UPLOAD_STAGES or step == "delete" for step in steps)

    try:
        if not args.skip_checks and not tool.config["migration"]["dry_run"] and touches_contentful:
            tool.pre_flight(wordpress="download" in steps)
        for step in steps:
            if step == "delete":
                tool.delete_entries()
            else:
                tool.run([step])
    except (ConfigError, PreFlightCheckError, IndexBuildError) as e:
        tool.log_message(str(e), level="ERROR")
        return 1

    tool.log_message("Migration process finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
