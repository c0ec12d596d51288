"""AI prompt template routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from ..gateway import catalog
from ..gateway.responses import envelope, listing, read_json
from ..gateway.service import ProcedureGateway, get_gateway

router = APIRouter(prefix="/prompt", tags=["prompt"])


@router.post("")
async def save_prompt(request: Request, gateway: ProcedureGateway = Depends(get_gateway)):
    payload = await read_json(request)
    await gateway.call(catalog.SAVE_PROMPT, payload)
    return envelope(
        status.HTTP_201_CREATED,
        "Prompt cadastrado com sucesso!",
        {
            "prompt": payload["prompt"],
            "instrupadrao": payload["instrupadrao"],
            "obs": payload["obs"],
        },
    )


@router.get("")
async def list_prompts(gateway: ProcedureGateway = Depends(get_gateway)):
    result = await gateway.call(catalog.LIST_PROMPTS)
    return listing(
        result.recordset, found="Prompts encontrados", empty="Nenhum prompt encontrado!"
    )
