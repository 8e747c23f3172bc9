"""Configuration for Home Assistant generation."""

from dataclasses import dataclass

from .automation import DEFAULT_ICON, DEFAULT_MODE


@dataclass
class GeneratorConfig:
    """Options for the generated document and artifact names."""

    icon: str = DEFAULT_ICON  # input_select icon
    mode: str = DEFAULT_MODE  # automation run mode
    config_ext: str = "yaml"
    debug_ext: str = "json"
    file_prefix: str = ""  # prepended to every artifact name
    include_debug_model: bool = True  # write <id>_model.<debug_ext>
    include_dot: bool = False  # write <id>.dot
