"""Stored-procedure gateway: binding, invocation and error shaping."""

from . import catalog
from .invoker import ProcedureResult, invoke
from .normalizer import normalize
from .params import BoundCall, bind
from .service import ProcedureGateway, get_gateway

__all__ = [
    "BoundCall",
    "ProcedureGateway",
    "ProcedureResult",
    "bind",
    "catalog",
    "get_gateway",
    "invoke",
    "normalize",
]
