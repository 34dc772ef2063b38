from .config_loader import load_config
from .errors import GeneratorError, GeneratorTimeout, RateLimited, ResponseParseError
from .response_parser import parse_fix_output, parse_generator_output

__all__ = [
    "load_config",
    "GeneratorError",
    "GeneratorTimeout",
    "RateLimited",
    "ResponseParseError",
    "parse_fix_output",
    "parse_generator_output",
]
