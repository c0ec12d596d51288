"""Customer routes: upsert, listing, lookup and removal by phone number."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status

from ..gateway import catalog
from ..gateway.responses import envelope, listing, read_json
from ..gateway.service import ProcedureGateway, get_gateway

router = APIRouter(tags=["clientes"])

# Response key -> column returned by sp_se1_cliente.
CUSTOMER_FIELDS: tuple[tuple[str, str], ...] = (
    ("Nome", "nome_cli"),
    ("Celular", "celular"),
    ("CPF", "cpf"),
    ("Email", "email"),
    ("Assinante", "assinante"),
    ("PagtoEmDia", "pagto_em_dia"),
    ("PrefResp", "pref_resp"),
    ("SaldoTrocaMensTexto", "saldo_troca_mens_texto"),
    ("SaldoTrocaMensAudio", "saldo_troca_mens_audio"),
    ("Validade", "validade"),
)


def shape_customer(row: dict[str, Any]) -> dict[str, Any]:
    return {key: row.get(column) for key, column in CUSTOMER_FIELDS}


def describe_customer(customer: dict[str, Any]) -> str:
    return (
        "Cliente encontrado com sucesso! "
        f"Nome: {customer['Nome']}, Celular: {customer['Celular']}, "
        f"CPF: {customer['CPF']}, Email: {customer['Email']}, "
        f"Assinante: {customer['Assinante']}, Recarga em Dia: {customer['PagtoEmDia']}, "
        f"Preferência de Resposta: {customer['PrefResp']}, "
        f"Saldo de Mensagens em Texto: {customer['SaldoTrocaMensTexto']}, "
        f"Saldo de Mensagens em Audio: {customer['SaldoTrocaMensAudio']}, "
        f"Validade de Mensagens: {customer['Validade']}"
    )


@router.post("/clientes")
async def save_customer(
    request: Request, gateway: ProcedureGateway = Depends(get_gateway)
):
    """Create or update a customer keyed by ``celular``.

    The lookup before the write only decides the wording of the response. Two
    concurrent requests for a new phone may both report "criado".
    """
    payload = await read_json(request)
    call = gateway.bind(catalog.SAVE_CUSTOMER, payload)
    existing = await gateway.call(
        catalog.GET_CUSTOMER,
        {"celular": call.params["celular"]},
        report_as=catalog.SAVE_CUSTOMER,
    )
    await gateway.execute(call)
    verb = "atualizado" if existing.recordset else "criado"
    return envelope(status.HTTP_200_OK, f"Cliente {verb} com sucesso!")


@router.get("/clientes/all")
async def list_customers(gateway: ProcedureGateway = Depends(get_gateway)):
    result = await gateway.call(catalog.LIST_CUSTOMERS)
    return listing(
        result.recordset,
        found="Clientes encontrados",
        empty="Nenhum cliente encontrado!",
    )


@router.get("/cliente/{celular}")
async def get_customer(celular: str, gateway: ProcedureGateway = Depends(get_gateway)):
    """Look up one customer; an unknown phone is answered with 200."""
    result = await gateway.call(catalog.GET_CUSTOMER, {"celular": celular})
    if not result.recordset:
        return envelope(status.HTTP_200_OK, "Cliente não cadastrado!")
    customer = shape_customer(result.recordset[0])
    return envelope(status.HTTP_200_OK, describe_customer(customer), customer)


@router.delete("/cliente/{celular}")
async def delete_customer(
    celular: str, gateway: ProcedureGateway = Depends(get_gateway)
):
    result = await gateway.call(catalog.DELETE_CUSTOMER, {"celular": celular})
    if result.rows_affected[:1] == [0]:
        return envelope(status.HTTP_200_OK, "Cliente não encontrado ou já excluído!")
    return envelope(status.HTTP_200_OK, "Cliente excluído com sucesso!")
