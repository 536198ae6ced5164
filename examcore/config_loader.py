"""
Configuration loader for the exam core.

Handles loading and validating configuration files.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .errors import ValidationError
from .models import ExamConfig

logger = logging.getLogger(__name__)


def load_config(config_path: Optional[Path] = None) -> ExamConfig:
    """
    Load the core configuration from a JSON file.

    Args:
        config_path: Path to the configuration file. If None, looks for
                    'config.json' next to the executable/script.

    Returns:
        ExamConfig object with validated configuration

    Raises:
        ValidationError: If the file is unreadable or the config is invalid
    """
    if config_path is None:
        if getattr(sys, 'frozen', False):
            exe_dir = Path(sys.executable).parent
        else:
            exe_dir = Path(__file__).parent.parent

        config_path = exe_dir / "config.json"

    config_path = Path(config_path)
    if not config_path.exists():
        logger.warning("Config file '%s' not found. Using default configuration.", config_path)
        return ExamConfig.default()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in config file: {e}") from e
    except OSError as e:
        raise ValidationError(f"Error reading config file: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError("Config file must contain a JSON object")

    config = ExamConfig.from_dict(data)

    is_valid, error_message = config.validate()
    if not is_valid:
        raise ValidationError(f"Invalid configuration: {error_message}")

    return config


def create_sample_config(output_path: Path):
    """
    Create a sample configuration file for administrators.

    Args:
        output_path: Path where to save the sample config
    """
    sample_config = {
        "data_dir": "data",
        "catalog_file": "exams.json",
        "regrade_policy": "append",
        "log_level": "INFO",
        "event_log": "session.log",
        "_comment": "This is a sample exam core configuration. Adjust values as needed.",
        "_instructions": {
            "data_dir": "Directory where sessions, results and report cards are stored",
            "catalog_file": "Exam catalog file, plain JSON (.json) or encrypted (.enc)",
            "regrade_policy": "'append' keeps every grading of a session, 'replace' keeps only the latest",
            "log_level": "One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
            "event_log": "File name of the session event log inside data_dir"
        }
    }

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(sample_config, f, indent=2)

    logger.info("Sample configuration created at: %s", output_path)
