"""Conversation thread routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from ..gateway import catalog
from ..gateway.responses import envelope, listing, no_content, read_json
from ..gateway.service import ProcedureGateway, get_gateway

router = APIRouter(prefix="/threads", tags=["threads"])


@router.post("")
async def save_thread(request: Request, gateway: ProcedureGateway = Depends(get_gateway)):
    """Create or update a thread keyed by ``ThreadId``."""
    payload = await read_json(request)
    result = await gateway.call(catalog.SAVE_THREAD, payload)
    return envelope(
        status.HTTP_200_OK,
        "Thread criada/atualizada com sucesso",
        {
            "ThreadId": payload["ThreadId"],
            "Celular": payload["Celular"],
            "Assunto": payload["Assunto"],
            "resultado": result.recordset,
        },
    )


@router.get("")
async def list_threads_by_phone(
    celular: str | None = None, gateway: ProcedureGateway = Depends(get_gateway)
):
    result = await gateway.call(catalog.LIST_THREADS_BY_PHONE, {"celular": celular})
    return listing(
        result.recordset, found="Threads encontradas", empty="Nenhuma thread encontrada!"
    )


@router.get("/all")
async def list_threads(gateway: ProcedureGateway = Depends(get_gateway)):
    result = await gateway.call(catalog.LIST_THREADS)
    return listing(
        result.recordset, found="Threads encontradas", empty="Nenhuma thread encontrada!"
    )


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thread(request: Request, gateway: ProcedureGateway = Depends(get_gateway)):
    """Delete a thread; ``Celular`` narrows the delete when present.

    Execution failures on this route answer 400, as existing consumers expect.
    """
    payload = await read_json(request)
    await gateway.call(catalog.DELETE_THREAD, payload)
    return no_content()
