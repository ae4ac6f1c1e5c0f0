from .base import VisionOracle
from .openai_vision import OpenAIVisionOracle, parse_guess

__all__ = ["OpenAIVisionOracle", "VisionOracle", "parse_guess"]
