"""Runtime support for packages generated by ``jsonrpc_codegen``."""

from .client import RpcCallError, RpcClient, RpcResult, RuntimeValidation, create_client
from .errors import Issue, TransportError, ValidationError
from .methods import Method
from .shapes import Base64
from .transporter import JsonRpcTransporter, RpcEndpoint
from .validation import Direction, KeyMap, Validator

__all__ = [
    "Base64",
    "Direction",
    "Issue",
    "JsonRpcTransporter",
    "KeyMap",
    "Method",
    "RpcCallError",
    "RpcClient",
    "RpcEndpoint",
    "RpcResult",
    "RuntimeValidation",
    "TransportError",
    "ValidationError",
    "Validator",
    "create_client",
]
