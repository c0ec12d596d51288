"""Token cost ledger routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from ..gateway import catalog
from ..gateway.responses import envelope, read_json
from ..gateway.service import ProcedureGateway, get_gateway

router = APIRouter(tags=["tokens"])

ECHOED_FIELDS = ("celular", "prefResp", "pergunta", "resposta", "nomeIA", "dolarCota")


@router.post("/tokens")
async def save_token_usage(
    request: Request, gateway: ProcedureGateway = Depends(get_gateway)
):
    """Append one question/answer cost record."""
    payload = await read_json(request)
    await gateway.call(catalog.SAVE_TOKENS, payload)
    return envelope(
        status.HTTP_201_CREATED,
        "Registro de tokens salvo com sucesso!",
        {field: payload[field] for field in ECHOED_FIELDS},
    )
