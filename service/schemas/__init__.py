from .requests import ConfigurationUpdateBody, ReviewBody, VerifyBody
from .responses import ErrorResponse, HealthResponse

__all__ = [
    "ConfigurationUpdateBody",
    "ReviewBody",
    "VerifyBody",
    "ErrorResponse",
    "HealthResponse",
]
