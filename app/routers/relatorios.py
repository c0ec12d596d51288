"""Reporting routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..gateway import catalog
from ..gateway.responses import envelope, listing
from ..gateway.service import ProcedureGateway, get_gateway

router = APIRouter(prefix="/relatorio", tags=["relatorio"])


@router.get("")
async def general_report(gateway: ProcedureGateway = Depends(get_gateway)):
    """Return every result set of the report, counted together."""
    result = await gateway.call(catalog.REPORT)
    if not result.total_rows:
        return envelope(status.HTTP_200_OK, "Nenhum registro encontrado!")
    return envelope(
        status.HTTP_200_OK,
        f"Registros encontrados: {result.total_rows}",
        result.result_sets,
    )


@router.get("/contatos")
async def contacts_report(gateway: ProcedureGateway = Depends(get_gateway)):
    result = await gateway.call(catalog.CONTACTS_REPORT)
    return listing(
        result.recordset, found="Contatos encontrados", empty="Nenhum contato encontrado!"
    )
