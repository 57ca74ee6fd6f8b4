from __future__ import annotations
import copy
import logging
from pathlib import Path
import yaml

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path("presets/rules.yaml")

DEFAULT_RULES = {
    "duplication": {
        "min_occurrences": 3,
        "exclude": [],
        "respect_gitignore": False,
        "max_bytes": 2_000_000,
        "workers": 1,
    },
}

def load_rules(rules_path: Path | None) -> dict:
    p = rules_path or DEFAULT_RULES_PATH
    if not p.exists():
        return copy.deepcopy(DEFAULT_RULES)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable rules file %s: %s", p, e)
        return copy.deepcopy(DEFAULT_RULES)
    if not isinstance(data, dict):
        return copy.deepcopy(DEFAULT_RULES)
    rules = copy.deepcopy(DEFAULT_RULES)
    for section, values in data.items():
        if isinstance(values, dict) and isinstance(rules.get(section), dict):
            rules[section].update(values)
        else:
            rules[section] = values
    return rules

def save_rules(rules: dict, rules_path: Path | None) -> Path:
    p = rules_path or DEFAULT_RULES_PATH
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(yaml.safe_dump(rules, sort_keys=False), encoding="utf-8")
    return p
