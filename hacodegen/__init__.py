"""State machine model -> Home Assistant automation compiler."""

from .config import GeneratorConfig
from .generator import CompiledMachine, HomeAssistantGenerator, compile_model
from .model import MissingRootError, ModelError

__version__ = "0.4.0"

__all__ = [
    "GeneratorConfig",
    "CompiledMachine",
    "HomeAssistantGenerator",
    "compile_model",
    "ModelError",
    "MissingRootError",
]
