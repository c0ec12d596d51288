"""Prompt, token cost and financial record endpoints."""

from datetime import datetime
from decimal import Decimal

from app.core.errors import ExecutionError
from conftest import result

TOKEN_RECORD = {
    "celular": "5511999999999",
    "prefResp": "texto",
    "pergunta": "Qual o saldo?",
    "resposta": "Seu saldo é 10.",
    "nomeIA": "gpt-4o",
    "dolarCota": 0.0125,
}


def test_save_prompt_echoes_fields(client, fake_db):
    body = {"prompt": "Seja breve", "instrupadrao": "Responda em PT-BR", "obs": "v2"}

    resp = client.post("/prompt", json=body)

    assert resp.status_code == 201
    assert resp.json() == {"message": "Prompt cadastrado com sucesso!", "data": body}
    assert fake_db.called("sp_gr_comando_ia") == [
        {"prompt_ia": "Seja breve", "instr_padrao": "Responda em PT-BR", "obs": "v2"}
    ]


def test_save_prompt_lists_missing_fields(offline_client):
    resp = offline_client.post("/prompt", json={"prompt": "x"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Os campos 'instrupadrao' e 'obs' são obrigatórios."


def test_list_prompts(client, fake_db):
    fake_db.on("sp_se1_comando_atu", result([{"prompt_ia": "a"}]))

    resp = client.get("/prompt")

    assert resp.json() == {
        "message": "Prompts encontrados: 1",
        "data": [{"prompt_ia": "a"}],
    }


def test_save_prompt_failure_is_server_error(client, fake_db):
    def fail(params):
        raise ExecutionError("value too long")

    fake_db.on("sp_gr_comando_ia", fail)

    resp = client.post("/prompt", json={"prompt": "a", "instrupadrao": "b", "obs": "c"})

    assert resp.status_code == 500
    assert resp.json()["error"] == "Erro ao cadastrar o prompt"


def test_save_tokens_without_phone_never_reaches_database(offline_client):
    body = {key: value for key, value in TOKEN_RECORD.items() if key != "celular"}

    resp = offline_client.post("/tokens", json=body)

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "O campo 'celular' é obrigatório.",
        "suggestion": "Envie um JSON com os campos obrigatórios preenchidos.",
    }


def test_save_tokens_echoes_required_fields(client, fake_db):
    resp = client.post("/tokens", json={**TOKEN_RECORD, "intencao": "saldo"})

    assert resp.status_code == 201
    assert resp.json() == {
        "message": "Registro de tokens salvo com sucesso!",
        "data": TOKEN_RECORD,
    }
    (params,) = fake_db.called("sp_conta_tokens")
    assert params["dolar_cota"] == Decimal("0.012500")
    assert params["intencao"] == "saldo"
    assert "nome_agente" not in params
    assert "foco" not in params


def test_save_tokens_rejects_non_numeric_cost(offline_client):
    resp = offline_client.post("/tokens", json={**TOKEN_RECORD, "dolarCota": "caro"})

    assert resp.status_code == 400
    assert "dolarCota" in resp.json()["error"]


def test_save_financial_record(client, fake_db):
    body = {
        "celular": "5511999999999",
        "codOper": 1,
        "invoiceNumber": 42,
        "codPacote": 3,
        "dataOper": "2024-05-01T10:30:00",
        "linhaPix": "00020126580014BR.GOV.BCB.PIX",
    }

    resp = client.post("/financeiro", json=body)

    assert resp.status_code == 201
    assert resp.json() == {
        "message": "Registro financeiro salvo com sucesso!",
        "data": {**body, "dataCriaPix": None, "dataRecPix": None},
    }
    (params,) = fake_db.called("sp_gr_controle_financ")
    assert params["data_oper"] == datetime(2024, 5, 1, 10, 30)
    assert params["data_cria_pix"] is None


def test_save_financial_record_requires_integer_codes(offline_client):
    resp = offline_client.post(
        "/financeiro",
        json={"celular": "5511", "codOper": "um", "invoiceNumber": 1, "codPacote": 1},
    )

    assert resp.status_code == 400
    assert "'codOper'" in resp.json()["error"]


def test_save_financial_record_failure(client, fake_db):
    def fail(params):
        raise ExecutionError("foreign key violation", code="23503")

    fake_db.on("sp_gr_controle_financ", fail)

    resp = client.post(
        "/financeiro",
        json={"celular": "5511", "codOper": 1, "invoiceNumber": 1, "codPacote": 99},
    )

    assert resp.status_code == 500
    assert resp.json()["error"] == "Erro ao registrar o controle financeiro"


def test_save_financial_record_rejects_code_beyond_integer_range(offline_client):
    resp = offline_client.post(
        "/financeiro",
        json={
            "celular": "5511999999999",
            "codOper": 2**40,
            "invoiceNumber": 1,
            "codPacote": 1,
        },
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == (
        "O campo 'codOper' deve estar entre -2147483648 e 2147483647."
    )


def test_save_tokens_rejects_float_phone(offline_client):
    resp = offline_client.post(
        "/tokens", json={**TOKEN_RECORD, "celular": 5511999999999.0}
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "O campo 'celular' deve ser um texto."
