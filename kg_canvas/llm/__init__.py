from .client import ChatRequest, LLMClientError, OllamaClient
from .parsing import ParseError, ParseOk, parse_json_object, strip_code_fences

__all__ = [
    "ChatRequest",
    "LLMClientError",
    "OllamaClient",
    "ParseError",
    "ParseOk",
    "parse_json_object",
    "strip_code_fences",
]
