from dataclasses import dataclass

INFO = "info"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

# Notice codes
VALIDATION = "validation"
BUSY = "busy"
CLOSED = "closed"
VERIFICATION_REJECTED = "verification_rejected"
VERIFICATION_UNAVAILABLE = "verification_unavailable"
VERIFIED = "verified"
VERIFIED_NO_DETAILS = "verified_no_details"
PERSISTENCE_FAILED = "persistence_failed"
FINALIZE_FAILED = "finalize_failed"
NOTICE_SENT = "notice_sent"
NOTICE_FAILED = "notice_failed"
NOTICE_RETRY_SENT = "notice_retry_sent"
NOTICE_TERMINAL_FAILURE = "notice_terminal_failure"

TEXTS = {
    VALIDATION: "Por favor, verifique o formato da informação inserida.",
    BUSY: "Aguarde um instante, ainda estou processando sua última resposta.",
    CLOSED: "Esta conversa já foi encerrada.",
    VERIFICATION_REJECTED: "❌ CNPJ inválido ou não encontrado. Por favor, verifique o número digitado.",
    VERIFICATION_UNAVAILABLE: "Não foi possível validar o CNPJ no momento. Tente novamente.",
    VERIFIED: "CNPJ validado: {company}",
    VERIFIED_NO_DETAILS: "✅ CNPJ validado com sucesso!",
    PERSISTENCE_FAILED: "Houve um problema ao salvar suas informações.",
    FINALIZE_FAILED: "❌ Seus dados foram salvos, mas ocorreu um erro ao processá-los. Nossa equipe entrará em contato em breve!",
    NOTICE_SENT: "✅ Informações enviadas com sucesso! Em breve nosso consultor entrará em contato.",
    NOTICE_FAILED: "❌ Erro ao enviar e-mail: {error}",
    NOTICE_RETRY_SENT: "✅ E-mail enviado com sucesso na segunda tentativa!",
    NOTICE_TERMINAL_FAILURE: "❌ Não foi possível enviar o e-mail. Nossa equipe foi notificada e entrará em contato em breve.",
}

LEVELS = {
    VALIDATION: ERROR,
    BUSY: INFO,
    CLOSED: INFO,
    VERIFICATION_REJECTED: ERROR,
    VERIFICATION_UNAVAILABLE: WARNING,
    VERIFIED: SUCCESS,
    VERIFIED_NO_DETAILS: SUCCESS,
    PERSISTENCE_FAILED: WARNING,
    FINALIZE_FAILED: ERROR,
    NOTICE_SENT: SUCCESS,
    NOTICE_FAILED: ERROR,
    NOTICE_RETRY_SENT: SUCCESS,
    NOTICE_TERMINAL_FAILURE: ERROR,
}


@dataclass(frozen=True)
class Notice:
    """User-visible, non-transcript feedback (what a UI shows as a toast)."""
    level: str
    code: str
    text: str


def make_notice(code: str, **params) -> Notice:
    text = TEXTS[code].format(**params) if params else TEXTS[code]
    return Notice(level=LEVELS.get(code, INFO), code=code, text=text)
