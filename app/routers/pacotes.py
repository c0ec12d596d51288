"""Read-only package catalog routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..gateway import catalog
from ..gateway.responses import listing
from ..gateway.service import ProcedureGateway, get_gateway

router = APIRouter(prefix="/pacotes", tags=["pacotes"])


@router.get("/padrao")
async def list_standard_packages(gateway: ProcedureGateway = Depends(get_gateway)):
    result = await gateway.call(catalog.LIST_STANDARD_PACKAGES)
    return listing(
        result.recordset, found="Pacotes encontrados", empty="Nenhum pacote encontrado!"
    )


@router.get("/palavra-chave")
async def list_keyword_packages(
    palavraChave: str | None = None,
    gateway: ProcedureGateway = Depends(get_gateway),
):
    """List packages, filtered by ``palavraChave`` when it is given."""
    result = await gateway.call(
        catalog.LIST_KEYWORD_PACKAGES, {"palavraChave": palavraChave}
    )
    return listing(
        result.recordset,
        found="Pacotes palavra-chave encontrados",
        empty="Nenhum pacote encontrado!",
    )
