"""
Settings Validator Module

Checks ``app_settings.json`` against the JSON schema shipped in
``careerfeed/schemas`` before pydantic ever sees it, so that a misspelled key
or an out-of-range number is reported with the setting's path and a hint.

Example Usage:
    from careerfeed.utils.validator import ConfigValidator, ConfigurationError

    try:
        settings_data = ConfigValidator().validate_settings(Path("config/app_settings.json"))
    except ConfigurationError as e:
        print(e)
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List

import structlog
from jsonschema import Draft7Validator, FormatChecker, ValidationError
from rich.console import Console

console = Console()
logger = structlog.get_logger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"
APP_SETTINGS_SCHEMA = "app_settings_schema.json"

# jsonschema keyword -> (headline, optional hint built from the error)
ERROR_MESSAGES: Dict[str, tuple[str, Callable[[ValidationError], str] | None]] = {
    "required": ("Missing required field", lambda e: "Add this field to the settings file"),
    "type": ("Type mismatch", lambda e: f"Expected type: {e.validator_value}"),
    "minLength": ("Value too short", None),
    "minimum": ("Value too small", None),
    "maximum": ("Value too large", None),
    "enum": ("Invalid value", lambda e: f"Allowed values: {e.validator_value}"),
    "additionalProperties": ("Unknown setting", lambda e: "Remove it or check its spelling"),
}


class ConfigurationError(Exception):
    """Raised when a settings file or schema is missing or invalid."""

    pass


def describe_error(error: ValidationError) -> str:
    """Render one jsonschema error as a two-line, human-readable message."""
    path = " -> ".join(str(part) for part in error.absolute_path) or "(root)"
    headline, hint = ERROR_MESSAGES.get(error.validator, ("Validation error", None))
    message = f"  * {headline} at '{path}': {error.message}"
    if hint is not None:
        message += f"\n    -> {hint(error)}"
    return message


class ConfigValidator:
    """Validates settings files against the bundled JSON schemas."""

    def __init__(self, schema_dir: Path = SCHEMA_DIR):
        self.schema_dir = schema_dir
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Load a schema by file name, caching it for later calls.

        Raises:
            ConfigurationError: If the schema file is missing or not valid JSON
        """
        if schema_name not in self._schemas:
            schema_path = self.schema_dir / schema_name
            if not schema_path.exists():
                logger.error("schema_not_found", schema_path=str(schema_path))
                raise ConfigurationError(f"Schema file not found: {schema_path}")

            try:
                self._schemas[schema_name] = json.loads(
                    schema_path.read_text(encoding="utf-8")
                )
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in schema {schema_name}: {e}") from e
            logger.debug("schema_loaded", schema_name=schema_name)

        return self._schemas[schema_name]

    def collect_errors(self, config: Dict[str, Any], schema_name: str) -> List[str]:
        """Return one formatted message per schema violation, ordered by path."""
        validator = Draft7Validator(
            self.load_schema(schema_name), format_checker=FormatChecker()
        )
        errors = sorted(
            validator.iter_errors(config),
            key=lambda e: [str(part) for part in e.absolute_path],
        )
        return [describe_error(error) for error in errors]

    def validate(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Raises:
            ConfigurationError: With every violation listed, if any
        """
        messages = self.collect_errors(config, schema_name)
        if not messages:
            return

        logger.warning(
            "settings_validation_failed",
            schema_name=schema_name,
            error_count=len(messages),
        )
        raise ConfigurationError(
            "\n".join(
                [f"\n[X] Settings validation failed for {schema_name}:\n"]
                + messages
                + ["\n[!] Fix the errors above and try again.\n"]
            )
        )

    def validate_file(self, config_path: Path, schema_name: str) -> Dict[str, Any]:
        """
        Read a JSON settings file and validate it.

        Returns:
            The parsed settings dictionary

        Raises:
            ConfigurationError: If the file is missing, unparsable or invalid
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            config = json.loads(config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in {config_path.name}: {e}\n"
                f"Check for trailing commas, missing quotes, or invalid syntax."
            ) from e

        self.validate(config, schema_name)
        return config

    def validate_settings(self, config_path: Path) -> Dict[str, Any]:
        """Validate ``app_settings.json``, reporting the outcome on the console."""
        console.print(f"\n[*] Validating {config_path}...")
        try:
            config = self.validate_file(config_path, APP_SETTINGS_SCHEMA)
        except ConfigurationError:
            console.print("[red][X] Application settings invalid[/red]")
            raise
        console.print("[green][+] Application settings valid[/green]\n")
        logger.info("settings_validated", config_path=str(config_path))
        return config
