"""Financial/payment record routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from ..gateway import catalog
from ..gateway.params import is_missing
from ..gateway.responses import envelope, read_json
from ..gateway.service import ProcedureGateway, get_gateway

router = APIRouter(tags=["financeiro"])

REQUIRED_FIELDS = ("celular", "codOper", "invoiceNumber", "codPacote")
OPTIONAL_FIELDS = ("dataOper", "linhaPix", "dataCriaPix", "dataRecPix")


@router.post("/financeiro")
async def save_financial_record(
    request: Request, gateway: ProcedureGateway = Depends(get_gateway)
):
    payload = await read_json(request)
    await gateway.call(catalog.SAVE_FINANCIAL, payload)
    data = {field: payload[field] for field in REQUIRED_FIELDS}
    for field in OPTIONAL_FIELDS:
        value = payload.get(field)
        data[field] = None if is_missing(value) else value
    return envelope(
        status.HTTP_201_CREATED, "Registro financeiro salvo com sucesso!", data
    )
