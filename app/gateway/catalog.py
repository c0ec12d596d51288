"""Parameter tables for every operation exposed over HTTP.

One :class:`Operation` per endpoint: the procedure it calls, how the call is
issued, the ordered parameter list and how failures are reported. Procedure
names are plain identifiers, optionally qualified by ``DB_SCHEMA``.
"""

from __future__ import annotations

import dataclasses

from .params import OMIT, CallKind, Param, decimal, integer, long_text, text, timestamp

RETRY_LATER = "Tente novamente mais tarde"
CHECK_PAYLOAD = "Verifique os dados enviados e tente novamente"
SEND_REQUIRED = "Envie um JSON com os campos obrigatórios preenchidos."


@dataclasses.dataclass(frozen=True)
class FailurePolicy:
    """Status code and wording used when the database call fails."""

    status_code: int
    error: str
    suggestion: str | None = None


@dataclasses.dataclass(frozen=True)
class Operation:
    key: str
    procedure: str
    failure: FailurePolicy
    params: tuple[Param, ...] = ()
    kind: CallKind = CallKind.FUNCTION
    cursors: tuple[str, ...] = ()
    validation_suggestion: str = SEND_REQUIRED


# Customers -----------------------------------------------------------------

CELULAR = text("celular", "celular", 20, required=True)

SAVE_CUSTOMER = Operation(
    key="clientes.gravar",
    procedure="sp_gr_cliente",
    kind=CallKind.PROCEDURE,
    params=(
        CELULAR,
        text("nome", "nome_cli", 200),
        text("cpf", "cpf", 11),
        text("email", "email", 50),
        text("assinante", "assinante", 3),
        text("pagtoEmDia", "pagto_em_dia", 3),
        text("prefResp", "pref_resp", 5),
        text("nomeToolChamadora", "nome_tool_chamadora", 60),
        text("nomeAgenteChamador", "nome_agente_chamador", 60),
    ),
    failure=FailurePolicy(400, "Erro ao processar a requisição", CHECK_PAYLOAD),
    validation_suggestion="Envie um JSON com o campo 'celular'.",
)

LIST_CUSTOMERS = Operation(
    key="clientes.listar",
    procedure="sp_se_cliente",
    failure=FailurePolicy(500, "Erro ao listar clientes", RETRY_LATER),
)

GET_CUSTOMER = Operation(
    key="clientes.buscar",
    procedure="sp_se1_cliente",
    params=(CELULAR,),
    failure=FailurePolicy(400, "Erro na busca"),
    validation_suggestion="Informe o celular no caminho da URL.",
)

DELETE_CUSTOMER = Operation(
    key="clientes.excluir",
    procedure="sp_ex_cliente",
    params=(CELULAR,),
    failure=FailurePolicy(400, "Erro na exclusão"),
    validation_suggestion="Informe o celular no caminho da URL.",
)

# Prompts -------------------------------------------------------------------

SAVE_PROMPT = Operation(
    key="prompt.gravar",
    procedure="sp_gr_comando_ia",
    kind=CallKind.PROCEDURE,
    params=(
        text("prompt", "prompt_ia", 5000, required=True),
        text("instrupadrao", "instr_padrao", 5000, required=True),
        text("obs", "obs", 5000, required=True),
    ),
    failure=FailurePolicy(500, "Erro ao cadastrar o prompt", CHECK_PAYLOAD),
)

LIST_PROMPTS = Operation(
    key="prompt.listar",
    procedure="sp_se1_comando_atu",
    failure=FailurePolicy(500, "Erro ao listar os prompts", RETRY_LATER),
)

# Token usage ---------------------------------------------------------------

SAVE_TOKENS = Operation(
    key="tokens.gravar",
    procedure="sp_conta_tokens",
    kind=CallKind.PROCEDURE,
    params=(
        text("celular", "celular", 20, required=True),
        text("prefResp", "pref_resp", 5, required=True),
        long_text("pergunta", "pergunta", required=True),
        long_text("resposta", "resposta", required=True),
        text("nomeIA", "nome_ia", 30, required=True),
        decimal("dolarCota", "dolar_cota", 10, 6, required=True),
        text("nomeAgente", "nome_agente", 60, default=OMIT),
        text("nomeTool", "nome_tool", 60, default=OMIT),
        text("intencao", "intencao", 60, default=OMIT),
        text("foco", "foco", 60, default=OMIT),
    ),
    failure=FailurePolicy(500, "Erro ao registrar o custo dos tokens", CHECK_PAYLOAD),
)

# Financial records ---------------------------------------------------------

SAVE_FINANCIAL = Operation(
    key="financeiro.gravar",
    procedure="sp_gr_controle_financ",
    kind=CallKind.PROCEDURE,
    params=(
        text("celular", "celular", 20, required=True),
        integer("codOper", "cod_oper", required=True),
        integer("invoiceNumber", "invoice_number", required=True),
        integer("codPacote", "cod_pacote", required=True),
        timestamp("dataOper", "data_oper"),
        text("linhaPix", "linha_pix", 512),
        timestamp("dataCriaPix", "data_cria_pix"),
        timestamp("dataRecPix", "data_rec_pix"),
        text("nomeAgente", "nome_agente", 60, default=OMIT),
        text("nomeTool", "nome_tool", 60, default=OMIT),
    ),
    failure=FailurePolicy(500, "Erro ao registrar o controle financeiro", CHECK_PAYLOAD),
)

# Packages ------------------------------------------------------------------

LIST_STANDARD_PACKAGES = Operation(
    key="pacotes.padrao",
    procedure="sp_se_pacote_padrao",
    failure=FailurePolicy(500, "Erro ao listar pacotes", RETRY_LATER),
)

LIST_KEYWORD_PACKAGES = Operation(
    key="pacotes.palavra_chave",
    procedure="sp_se_pacote_chave",
    params=(text("palavraChave", "palavra_chave", 255, default=OMIT),),
    failure=FailurePolicy(500, "Erro ao listar pacotes", RETRY_LATER),
)

# Conversation threads ------------------------------------------------------

THREAD_SUGGESTION = (
    "Verifique: ThreadId (até 50 chars), Celular (até 20 chars), Assunto não vazio"
)

SAVE_THREAD = Operation(
    key="threads.gravar",
    procedure="sp_gr_thread_ia",
    params=(
        text("ThreadId", "tread_id", 50, required=True),
        text("Celular", "celular", 20, required=True),
        text("Assunto", "assunto", 200, required=True),
    ),
    failure=FailurePolicy(500, "Falha na operação", CHECK_PAYLOAD),
    validation_suggestion=THREAD_SUGGESTION,
)

LIST_THREADS_BY_PHONE = Operation(
    key="threads.buscar",
    procedure="sp_se_thread_ia",
    params=(text("celular", "celular", 20, required=True),),
    failure=FailurePolicy(
        500, "Falha na busca", "O formato do celular deve ser '5511999999999'"
    ),
    validation_suggestion="Informe o parâmetro 'celular' na query string.",
)

LIST_THREADS = Operation(
    key="threads.listar",
    procedure="sp_se_thread_ia",
    failure=FailurePolicy(
        500,
        "Falha na listagem",
        "Verifique se a procedure sp_se_thread_ia existe no banco",
    ),
)

DELETE_THREAD = Operation(
    key="threads.excluir",
    procedure="sp_ex_thread_ia",
    kind=CallKind.PROCEDURE,
    params=(
        text("TreadId", "tread_id", 50, required=True, aliases=("ThreadId",)),
        text("Celular", "celular", 20, default=OMIT),
    ),
    failure=FailurePolicy(
        400, "Exclusão falhou", "Verifique se a thread existe e tente novamente"
    ),
    validation_suggestion="O campo 'TreadId' deve ser fornecido.",
)

# Reports -------------------------------------------------------------------

REPORT = Operation(
    key="relatorio.geral",
    procedure="sp_se_relatorio",
    kind=CallKind.PROCEDURE,
    cursors=("resumo", "detalhes"),
    failure=FailurePolicy(500, "Erro ao gerar o relatório", RETRY_LATER),
)

CONTACTS_REPORT = Operation(
    key="relatorio.contatos",
    procedure="sp_se_relatorio_contatos",
    failure=FailurePolicy(500, "Erro ao gerar o relatório de contatos", RETRY_LATER),
)


OPERATIONS: dict[str, Operation] = {
    op.key: op
    for op in (
        SAVE_CUSTOMER,
        LIST_CUSTOMERS,
        GET_CUSTOMER,
        DELETE_CUSTOMER,
        SAVE_PROMPT,
        LIST_PROMPTS,
        SAVE_TOKENS,
        SAVE_FINANCIAL,
        LIST_STANDARD_PACKAGES,
        LIST_KEYWORD_PACKAGES,
        SAVE_THREAD,
        LIST_THREADS_BY_PHONE,
        LIST_THREADS,
        DELETE_THREAD,
        REPORT,
        CONTACTS_REPORT,
    )
}
