"""
Configuration management for covfuzz
"""

import json
import os
import sys
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from covfuzz.errors import ConfigValidationError
from covfuzz.fuzz_generator import DEFAULT_MAX_RETRIES
from covfuzz.nodes import TypeNode, validate_nodes
from covfuzz.utils import ConfigValidator


def default_max_workers() -> int:
    return 2 * (os.cpu_count() or 1)


@dataclass
class RunnerSettings:
    """Runner settings data class"""
    timeout_seconds: float = 5.0
    max_workers: int = field(default_factory=default_max_workers)
    python_executable: str = sys.executable
    max_generation_retries: int = DEFAULT_MAX_RETRIES
    float_rel_tol: float = 1e-9
    float_abs_tol: float = 1e-12
    significant_digits: int = 9
    seed: Optional[int] = None
    output_dir: str = "results"


@dataclass
class ConfigFile:
    """Canonical, validated description of the function under test"""
    function_name: str
    nodes: List[TypeNode]
    num_rand: int

    def __post_init__(self):
        if not isinstance(self.function_name, str) or not self.function_name.isidentifier():
            raise ConfigValidationError("function_name", f"not a valid identifier: {self.function_name!r}")
        if not isinstance(self.num_rand, int) or isinstance(self.num_rand, bool) or self.num_rand < 0:
            raise ConfigValidationError("num_rand", f"must be a non-negative integer, got {self.num_rand!r}")
        self.nodes = list(self.nodes)
        validate_nodes(self.nodes)


class Config:
    """Runner settings manager"""

    def __init__(self, config_path: str = "covfuzz.json"):
        self.config_path = config_path
        self._load_config()

    def _load_config(self):
        """Load configuration from file"""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except FileNotFoundError:
            config_data = self._get_default_config()
            self._save_config(config_data)

        defaults = self._get_default_config()
        config_data = ConfigValidator.fix_common_issues(config_data, defaults)
        issues = ConfigValidator.validate_config(config_data, known_keys=defaults['runner'].keys())
        if issues:
            raise ConfigValidationError(self.config_path, "; ".join(issues))

        self.runner = RunnerSettings(**config_data['runner'])

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration"""
        return {'runner': asdict(RunnerSettings())}

    def _save_config(self, config_data: Dict[str, Any]):
        """Save configuration to file"""
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(config_data, f, indent=2, ensure_ascii=False)
