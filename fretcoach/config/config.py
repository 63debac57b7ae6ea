from __future__ import annotations

"""Configuration loading and validation for fretcoach.

This module loads YAML configuration, applies defaults, and validates
tuning, fret limits and quiz policy enumerations.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..theory.fretboard import StringTuning
from ..theory.caged import ShapeBank

ALLOWED_WRONG_CLICK_POLICIES = {"ignore", "reset"}
ALLOWED_QUIZ_MODES = {"find-any", "find-all", "find-on-string"}


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return data


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or package defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.

    Raises:
        FileNotFoundError: if `path` does not exist.
    """
    if path:
        return _load_yaml(Path(path))
    return _load_yaml(Path(__file__).with_name("defaults.yml"))


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Tuning and fret limits are hard errors (ValueError). Unknown quiz policy
    values print a warning and fall back to the default.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated and merged configuration dictionary.
    """
    cfg.setdefault("fretboard", {})
    cfg.setdefault("difficulty", {})
    cfg.setdefault("quiz", {})
    cfg.setdefault("session", {})
    cfg.setdefault("analytics", {})

    board = cfg["fretboard"]
    quiz = cfg["quiz"]

    board.setdefault("tuning", ["E", "B", "G", "D", "A", "E"])
    board.setdefault("max_fret", 15)
    board.setdefault("shapes_path", None)

    quiz.setdefault("questions", 12)
    quiz.setdefault("maintenance_mode", "find-any")
    quiz.setdefault("min_attempts_for_adaptive", 10)
    quiz.setdefault("find_all_wrong_click", "ignore")
    quiz.setdefault("feedback_delay_ms", 1500)

    # Hard validations
    tuning = board.get("tuning")
    if not isinstance(tuning, (list, tuple)) or len(tuning) != 6:
        raise ValueError(f"fretboard.tuning must list exactly 6 open-string notes, got {tuning!r}")
    StringTuning.from_names(tuning)

    max_fret = int(board.get("max_fret"))
    if max_fret < 0:
        raise ValueError(f"fretboard.max_fret must be >= 0, got {max_fret}")
    board["max_fret"] = max_fret

    if int(quiz.get("questions")) < 1:
        raise ValueError("quiz.questions must be >= 1")

    # Soft enum validations
    policy = quiz.get("find_all_wrong_click")
    if policy not in ALLOWED_WRONG_CLICK_POLICIES:
        print(f"WARNING: Unsupported find_all_wrong_click '{policy}', using 'ignore'.")
        quiz["find_all_wrong_click"] = "ignore"

    mmode = quiz.get("maintenance_mode")
    if mmode not in ALLOWED_QUIZ_MODES:
        print(f"WARNING: Unsupported maintenance_mode '{mmode}', using 'find-any'.")
        quiz["maintenance_mode"] = "find-any"

    try:
        delay = int(quiz.get("feedback_delay_ms"))
    except (TypeError, ValueError):
        print("WARNING: feedback_delay_ms is not a number, using 1500.")
        delay = 1500
    quiz["feedback_delay_ms"] = max(0, delay)

    return cfg


def tuning_from_config(cfg: Dict[str, Any]) -> StringTuning:
    return StringTuning.from_names(cfg["fretboard"]["tuning"])


def shape_bank_from_config(cfg: Dict[str, Any]) -> ShapeBank:
    return ShapeBank(cfg["fretboard"].get("shapes_path"))
