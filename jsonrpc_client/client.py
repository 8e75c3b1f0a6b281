"""Selective JSON-RPC client.

``create_client`` builds a client class that carries only the methods it is
given, so an application that imports three methods from a generated
``methods.py`` gets a client with exactly those three attributes.

Every call returns an :class:`RpcResult`. RPC errors, transport failures and
validation failures all come back in its ``error`` slot as an
:class:`RpcCallError`; calls never raise for them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Any, Iterable, Mapping, NamedTuple

from .errors import TransportError, ValidationError
from .methods import Method
from .transporter import Transporter
from .validation import Direction, Validator

logger = logging.getLogger(__name__)

VALIDATION = "validation"
RPC = "rpc"
TRANSPORT = "transport"


@dataclass(frozen=True)
class RuntimeValidation:
    """Which payloads a client checks against their schemas.

    Unchecked payloads are still renamed between wire and idiomatic names.
    """

    request: bool = False
    response: bool = False
    error: bool = False

    @classmethod
    def coerce(cls, value: "bool | Mapping[str, bool] | RuntimeValidation | None") -> "RuntimeValidation":
        if isinstance(value, cls):
            return value
        if value is None:
            return cls()
        if isinstance(value, bool):
            return cls(value, value, value)
        if isinstance(value, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = set(value) - known
            if unknown:
                raise TypeError(f"unknown validation switch(es): {', '.join(sorted(unknown))}")
            return cls(**{key: bool(flag) for key, flag in value.items()})
        raise TypeError(f"cannot build RuntimeValidation from {type(value).__name__}")


@dataclass(frozen=True)
class RpcCallError:
    """Why a call produced no result.

    ``kind`` is ``"rpc"`` (the node answered with an error object, kept in
    ``rpc`` in idiomatic form), ``"transport"`` (no reply) or
    ``"validation"`` (``validation`` holds the failure and ``direction``
    names the payload: ``"request"``, ``"response"`` or ``"error"``).
    """

    kind: str
    message: str
    rpc: Any = None
    validation: ValidationError | None = None
    direction: str | None = None


class RpcResult(NamedTuple):
    result: Any = None
    error: RpcCallError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RpcClient:
    """Base class of the clients built by :func:`create_client`."""

    __slots__ = ("transporter", "validation")

    METHODS: Mapping[str, Method] = MappingProxyType({})

    def __init__(self, transporter: Transporter, validation: Any = False) -> None:
        self.transporter = transporter
        self.validation = RuntimeValidation.coerce(validation)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} methods={sorted(self.METHODS)}>"

    async def aclose(self) -> None:
        close = getattr(self.transporter, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _call(self, method: Method, request: Any) -> RpcResult:
        payload = method.prepare(request)
        params, failure = _convert(
            method.request, payload, Direction.TO_WIRE, self.validation.request, "request",
        )
        if failure is not None:
            return RpcResult(error=failure)

        try:
            reply = await self.transporter(method.name, params)
        except TransportError as exc:
            logger.warning("%s: transport failure: %s", method.name, exc)
            return RpcResult(error=RpcCallError(TRANSPORT, str(exc)))

        error = reply.get("error")
        if error is not None:
            rpc_error, failure = _convert(
                method.error, error, Direction.FROM_WIRE, self.validation.error, "error",
            )
            if failure is not None:
                return RpcResult(error=failure)
            return RpcResult(error=RpcCallError(RPC, _error_message(rpc_error), rpc=rpc_error))

        result, failure = _convert(
            method.response, reply.get("result"), Direction.FROM_WIRE, self.validation.response, "response",
        )
        if failure is not None:
            return RpcResult(error=failure)
        return RpcResult(result=result)


def _convert(
    validator: Validator,
    value: Any,
    direction: Direction,
    checked: bool,
    label: str,
) -> tuple[Any, RpcCallError | None]:
    if not checked:
        return validator.translate(value, direction), None
    outcome = validator.check(value, direction)
    if outcome.ok:
        return outcome.value, None
    logger.debug("%s failed validation: %s", label, outcome.error)
    failure = RpcCallError(
        VALIDATION,
        f"{label} {outcome.error}",
        validation=outcome.error,
        direction=label,
    )
    return None, failure


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        for key in ("message", "name"):
            if isinstance(error.get(key), str):
                return error[key]
    return str(error)


def _bind(method: Method):
    async def call(self: RpcClient, request: Any = None) -> RpcResult:
        return await self._call(method, request)

    call.__name__ = method.attribute
    call.__qualname__ = f"RpcClient.{method.attribute}"
    call.__doc__ = method.description
    return call


def create_client(
    transporter: Transporter,
    methods: Iterable[Method] | Mapping[str, Method],
    validation: Any = False,
) -> RpcClient:
    """Build a client exposing exactly ``methods``.

    ``methods`` is an iterable of :class:`Method` records or a mapping whose
    values are. ``validation`` is a bool, a mapping with ``request`` /
    ``response`` / ``error`` switches, or a :class:`RuntimeValidation`.
    """
    if isinstance(methods, Mapping):
        methods = methods.values()

    selected: dict[str, Method] = {}
    for method in methods:
        if method.attribute in selected:
            raise ValueError(f"method attribute {method.attribute!r} supplied twice")
        if hasattr(RpcClient, method.attribute):
            raise ValueError(f"method attribute {method.attribute!r} shadows a client attribute")
        selected[method.attribute] = method

    namespace: dict[str, Any] = {
        "__slots__": (),
        "METHODS": MappingProxyType(selected),
    }
    for attribute, method in selected.items():
        namespace[attribute] = _bind(method)

    cls = type("RpcClient", (RpcClient,), namespace)
    logger.debug("client created with %d method(s)", len(selected))
    return cls(transporter, validation)
