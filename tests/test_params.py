from datetime import datetime
from decimal import Decimal

import pytest
from psycopg import sql

from app.core.errors import ValidationError
from app.gateway import catalog
from app.gateway.params import CallKind, Param, SqlType, bind, coerce, text


def test_bind_lists_every_missing_field():
    with pytest.raises(ValidationError) as exc:
        bind(catalog.SAVE_TOKENS, {"prefResp": "texto", "resposta": "ok"})

    assert exc.value.missing == ("celular", "pergunta", "nomeIA", "dolarCota")
    assert exc.value.operation is catalog.SAVE_TOKENS
    assert "'celular', 'pergunta', 'nomeIA' e 'dolarCota'" in exc.value.message


def test_bind_single_missing_field_message():
    with pytest.raises(ValidationError) as exc:
        bind(catalog.SAVE_CUSTOMER, {"nome": "Ana"})

    assert exc.value.message == "O campo 'celular' é obrigatório."


def test_empty_string_counts_as_missing():
    with pytest.raises(ValidationError) as exc:
        bind(catalog.SAVE_PROMPT, {"prompt": "", "instrupadrao": "x", "obs": "y"})

    assert exc.value.missing == ("prompt",)


def test_bind_applies_explicit_defaults_in_declaration_order():
    call = bind(catalog.SAVE_CUSTOMER, {"celular": "5511999999999", "nome": "Ana"})

    assert list(call.params) == [param.name for param in catalog.SAVE_CUSTOMER.params]
    assert call.params["celular"] == "5511999999999"
    assert call.params["nome_cli"] == "Ana"
    assert call.params["cpf"] == ""
    assert call.procedure == "sp_gr_cliente"


def test_bind_omits_optional_arguments_without_default():
    call = bind(catalog.LIST_KEYWORD_PACKAGES, {"palavraChave": None})
    assert call.params == {}

    call = bind(catalog.LIST_KEYWORD_PACKAGES, {"palavraChave": "premium"})
    assert call.params == {"palavra_chave": "premium"}


def test_bind_financial_record_types():
    call = bind(
        catalog.SAVE_FINANCIAL,
        {
            "celular": "5511999999999",
            "codOper": "3",
            "invoiceNumber": 1001,
            "codPacote": 2.0,
            "dataOper": "2024-05-01T10:30:00",
            "dataCriaPix": "",
        },
    )

    assert call.params["cod_oper"] == 3
    assert call.params["invoice_number"] == 1001
    assert call.params["cod_pacote"] == 2
    assert call.params["data_oper"] == datetime(2024, 5, 1, 10, 30)
    assert call.params["data_cria_pix"] is None
    assert call.params["linha_pix"] == ""
    assert "nome_agente" not in call.params


def test_over_length_text_is_rejected_not_truncated():
    with pytest.raises(ValidationError) as exc:
        bind(catalog.GET_CUSTOMER, {"celular": "5" * 21})

    assert exc.value.missing == ()
    assert "celular" in exc.value.invalid
    assert "20 caracteres" in exc.value.message


def test_invalid_values_are_collected_with_missing_fields():
    with pytest.raises(ValidationError) as exc:
        bind(
            catalog.SAVE_FINANCIAL,
            {"celular": "5511", "codOper": "abc", "invoiceNumber": True},
        )

    assert exc.value.missing == ("codPacote",)
    assert set(exc.value.invalid) == {"codOper", "invoiceNumber"}


def test_decimal_is_quantized_and_precision_checked():
    param = Param("dolarCota", "dolar_cota", SqlType.DECIMAL, precision=10, scale=6)

    assert coerce(param, "5.1234567") == Decimal("5.123457")
    assert coerce(param, 4) == Decimal("4.000000")
    with pytest.raises(ValueError):
        coerce(param, "12345")
    with pytest.raises(ValueError):
        coerce(param, "abc")


def test_datetime_rejects_garbage():
    param = Param("dataOper", "data_oper", SqlType.DATETIME, default=None)

    with pytest.raises(ValueError):
        coerce(param, "ontem")


def test_aliases_are_accepted():
    call = bind(catalog.DELETE_THREAD, {"ThreadId": "thread-1"})

    assert call.params == {"tread_id": "thread-1"}


def test_text_accepts_integers_but_not_floats_or_objects():
    param = text("celular", "celular", 20)

    assert coerce(param, 5511999999999) == "5511999999999"
    for value in (5511999999999.0, 1e20, True, {"n": 1}):
        with pytest.raises(ValueError):
            coerce(param, value)


def test_float_phone_is_rejected_not_rewritten():
    with pytest.raises(ValidationError) as exc:
        bind(catalog.SAVE_CUSTOMER, {"celular": 5511999999999.0})

    assert exc.value.invalid == {"celular": "deve ser um texto"}


@pytest.mark.parametrize("value", [2**31, -(2**31) - 1, 2**40])
def test_integer_outside_32_bits_is_rejected(value):
    with pytest.raises(ValidationError) as exc:
        bind(
            catalog.SAVE_FINANCIAL,
            {"celular": "5511", "codOper": value, "invoiceNumber": 1, "codPacote": 1},
        )

    assert exc.value.invalid == {
        "codOper": "deve estar entre -2147483648 e 2147483647"
    }


def test_integer_bounds_are_accepted():
    call = bind(
        catalog.SAVE_FINANCIAL,
        {
            "celular": "5511",
            "codOper": 2**31 - 1,
            "invoiceNumber": -(2**31),
            "codPacote": "7",
        },
    )

    assert call.params["cod_oper"] == 2**31 - 1
    assert call.params["invoice_number"] == -(2**31)
    assert call.params["cod_pacote"] == 7


@pytest.mark.parametrize("value", ["-+5", "1.5", 2.5, "doze"])
def test_malformed_integer_reason_is_localized(value):
    with pytest.raises(ValidationError) as exc:
        bind(
            catalog.SAVE_FINANCIAL,
            {"celular": "5511", "codOper": value, "invoiceNumber": 1, "codPacote": 1},
        )

    assert exc.value.invalid == {"codOper": "deve ser um número inteiro"}
    assert exc.value.message == "O campo 'codOper' deve ser um número inteiro."


def test_decimal_precision_reason_is_localized():
    with pytest.raises(ValidationError) as exc:
        bind(
            catalog.SAVE_TOKENS,
            {
                "celular": "5511",
                "prefResp": "texto",
                "pergunta": "p",
                "resposta": "r",
                "nomeIA": "ia",
                "dolarCota": "123456",
            },
        )

    assert exc.value.invalid == {"dolarCota": "excede a precisão numérica (10,6)"}


def test_statement_for_query_kind_is_the_query_text():
    operation = catalog.Operation(
        key="adhoc",
        procedure="SELECT * FROM clientes WHERE celular = %(celular)s",
        kind=CallKind.QUERY,
        params=(text("celular", "celular", 20, required=True),),
        failure=catalog.FailurePolicy(500, "Erro"),
    )

    call = bind(operation, {"celular": "5511"})

    assert call.statement().as_string(None) == operation.procedure
    assert call.params == {"celular": "5511"}


def test_function_statement_uses_named_typed_arguments():
    call = bind(catalog.GET_CUSTOMER, {"celular": "5511999999999"})

    assert call.statement().as_string(None) == (
        'SELECT * FROM "sp_se1_cliente"("celular" => %(celular)s::varchar(20))'
    )


def test_function_statement_without_arguments():
    call = bind(catalog.LIST_CUSTOMERS, {})

    assert call.statement().as_string(None) == 'SELECT * FROM "sp_se_cliente"()'


def test_procedure_statement_uses_call_and_skips_omitted_arguments():
    call = bind(
        catalog.SAVE_TOKENS,
        {
            "celular": "5511",
            "prefResp": "texto",
            "pergunta": "p",
            "resposta": "r",
            "nomeIA": "ia",
            "dolarCota": 1,
            "foco": "vendas",
        },
    )

    assert call.statement().as_string(None) == (
        'CALL "sp_conta_tokens"('
        '"celular" => %(celular)s::varchar(20), '
        '"pref_resp" => %(pref_resp)s::varchar(5), '
        '"pergunta" => %(pergunta)s::text, '
        '"resposta" => %(resposta)s::text, '
        '"nome_ia" => %(nome_ia)s::varchar(30), '
        '"dolar_cota" => %(dolar_cota)s::numeric(10,6), '
        '"foco" => %(foco)s::varchar(60))'
    )


def test_refcursor_procedure_statement_is_schema_qualified():
    call = bind(catalog.REPORT, {})

    statement = call.statement("relatorios")

    assert isinstance(statement, sql.Composed)
    assert statement.as_string(None) == (
        'CALL "relatorios"."sp_se_relatorio"('
        '"resumo" => NULL::refcursor, "detalhes" => NULL::refcursor)'
    )
