"""HAL Coder - a Pro/Junior agentic coding assistant."""

__version__ = "0.1.0"

from hal_coder.config import Config
from hal_coder.main import main

__all__ = ["Config", "main", "__version__"]
