"""CLI commands for newsingest."""

from newsingest.cli.commands.cleanup import cleanup
from newsingest.cli.commands.health import health
from newsingest.cli.commands.run import run
from newsingest.cli.commands.stats import stats
from newsingest.cli.commands.translate import translate

__all__ = ["run", "stats", "health", "cleanup", "translate"]
