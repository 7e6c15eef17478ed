#!/usr/bin/env python
"""
Schema migrations for the patient records database.

Usage:
    python run_migrations.py upgrade [revision]      # Apply migrations (default: head)
    python run_migrations.py downgrade [revision]    # Roll back (default: one step)
    python run_migrations.py revision "message"      # Autogenerate from the models
    python run_migrations.py stamp [revision]        # Mark a database as migrated
    python run_migrations.py current                 # Show the applied revision
    python run_migrations.py history                 # Show the revision history

The target database is taken from DATABASE_URL (see patient_records.config).
"""
import os
import sys

from alembic import command
from alembic.config import Config

from patient_records.config.config import settings
from patient_records.core.utils import configure_logging, logger


ALEMBIC_INI = os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini")


def build_config() -> Config:
    alembic_cfg = Config(ALEMBIC_INI)
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    return alembic_cfg


def _run(action: str, func, *args, **kwargs) -> None:
    try:
        func(build_config(), *args, **kwargs)
    except Exception as e:
        logger.log_error({"event": "migration_failed", "action": action, "error": str(e)})
        sys.exit(1)
    logger.log_info({"event": "migration_finished", "action": action})


def main(argv=None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        print(__doc__)
        sys.exit(1)

    configure_logging(settings.effective_log_level)
    action, rest = argv[0].lower(), argv[1:]

    if action == "upgrade":
        _run(action, command.upgrade, rest[0] if rest else "head")
    elif action == "downgrade":
        _run(action, command.downgrade, rest[0] if rest else "-1")
    elif action == "revision":
        if not rest:
            print('Error: revision message required, e.g. run_migrations.py revision "add index"')
            sys.exit(1)
        _run(action, command.revision, message=rest[0], autogenerate=True)
    elif action == "stamp":
        _run(action, command.stamp, rest[0] if rest else "head")
    elif action == "current":
        _run(action, command.current)
    elif action == "history":
        _run(action, command.history)
    else:
        print(f"Unknown action: {action}")
        print(__doc__)
        sys.exit(1)


if __name__ == "__main__":
    main()
