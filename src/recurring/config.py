"""Configuration management for Recurring."""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from .core.ledger import LedgerFormat

logger = logging.getLogger(__name__)

RECURRING_HOME = Path(os.environ.get("RECURRING_HOME", Path.home() / ".recurring"))
CONFIG_FILE = RECURRING_HOME / "config" / "recurring.conf"

POSITIONS = ("top", "bottom")

# An inline comment is a "#" with whitespace on both sides (or at line end)
_INLINE_COMMENT = re.compile(r"\s+#(?:\s|$)")


@dataclass
class Config:
    """Recurring configuration."""

    vault_dir: str = ""
    # Task identification
    type_property: str = "Type"
    type_value: str = "Task"
    due_property: str = "Due"
    done_property: str = "Done"
    recur_property: str = "Recur"
    complete_time_property: str = "CompleteTime"
    # Completion ledger
    completion_heading: str = "Completions"
    completion_position: str = "bottom"
    datetime_format: str = "%Y-%m-%dT%H:%M:%S"
    completed_label: str = "Done"
    skipped_label: str = "Skipped"
    ledger_due_column: bool = True

    def ledger_format(self) -> LedgerFormat:
        """Ledger rendering options derived from this config."""
        return LedgerFormat(
            heading=self.completion_heading,
            position=self.completion_position,
            datetime_format=self.datetime_format,
            completed_label=self.completed_label,
            skipped_label=self.skipped_label,
            include_due_column=self.ledger_due_column,
        )


def _parse_bool(value: str) -> bool | None:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    return None


def _unquote(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    # Unquoted: strip inline comments, keep "#" inside values like "Log #2"
    return _INLINE_COMMENT.split(value, maxsplit=1)[0].strip()


def load_config(path: Path | str | None = None) -> Config:
    """Load configuration from recurring.conf, falling back to defaults."""
    config = Config()
    config_file = Path(path).expanduser() if path else CONFIG_FILE

    if not config_file.exists():
        return config

    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "vault_dir":
                config.vault_dir = value
            case "type_property":
                config.type_property = value
            case "type_value":
                config.type_value = value
            case "due_property":
                config.due_property = value
            case "done_property":
                config.done_property = value
            case "recur_property":
                config.recur_property = value
            case "complete_time_property":
                config.complete_time_property = value
            case "completion_heading":
                config.completion_heading = value
            case "completion_position":
                if value.lower() in POSITIONS:
                    config.completion_position = value.lower()
                else:
                    logger.warning(f"Ignoring COMPLETION_POSITION={value!r}, expected top or bottom")
            case "datetime_format":
                config.datetime_format = value
            case "completed_label":
                config.completed_label = value
            case "skipped_label":
                config.skipped_label = value
            case "ledger_due_column":
                flag = _parse_bool(value)
                if flag is None:
                    logger.warning(f"Ignoring LEDGER_DUE_COLUMN={value!r}, expected a boolean")
                else:
                    config.ledger_due_column = flag
            case _:
                logger.debug(f"Unknown config key: {key}")

    return config
