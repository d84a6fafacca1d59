"""Run configuration of the scaffold generator.

Values come from the GeneratorConfig defaults, an optional YAML file and
``key=value`` overrides, merged in that order with OmegaConf.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from omegaconf import OmegaConf

from scaffoldgen.structure.adapter import ScaffoldModeOption

logger = logging.getLogger(__name__)

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


@dataclass
class GeneratorConfig:
    scaffold_mode: str = ScaffoldModeOption.SCAFFOLD
    rule_seven_applied: bool = True
    max_rings: Optional[int] = 10
    smiles_column: Optional[str] = None
    output_path: str = "output"
    draw_trees: bool = False
    log_level: str = "info"

    def __post_init__(self):
        if self.scaffold_mode not in ScaffoldModeOption.values():
            msg = (
                f"Unknown scaffold_mode {self.scaffold_mode!r}, "
                f"expected one of {ScaffoldModeOption.values()}"
            )
            raise ValueError(msg)
        if self.max_rings is not None and self.max_rings < 1:
            msg = f"max_rings must be positive, got {self.max_rings}"
            raise ValueError(msg)
        if self.log_level.lower() not in LOG_LEVELS:
            msg = f"Unknown log_level {self.log_level!r}"
            raise ValueError(msg)


def load_config(config_path=None, overrides=None) -> GeneratorConfig:
    """Build the configuration.

    Args:
        config_path (str | None): YAML file with a subset of the fields.
        overrides (list[str] | None): Dotlist entries such as
            ``["max_rings=8", "scaffold_mode=murcko_framework"]``.

    Raises:
        ValueError: If a value is invalid.
    """
    config = OmegaConf.structured(GeneratorConfig)
    if config_path:
        logger.info("Loading configuration from %s", config_path)
        config = OmegaConf.merge(config, OmegaConf.load(config_path))
    if overrides:
        config = OmegaConf.merge(config, OmegaConf.from_dotlist(list(overrides)))
    return OmegaConf.to_object(config)
