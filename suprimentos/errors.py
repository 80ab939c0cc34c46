"""
Error taxonomy.

- missing schema   -> MissingSchemaError (first-run setup flow)
- missing column   -> MissingColumnError (blocking: run the repair script)
- connection       -> ConnectionFailure (non-blocking banner)
- validation       -> ValidationError (never reaches the store)

Handlers registered in create_app() turn every AppError into a JSON body.
"""

from __future__ import annotations

from typing import Any, Dict

# Backend error codes
MISSING_TABLE_CODES = frozenset({"PGRST205", "42P01"})
MISSING_COLUMN_CODE = "42703"
UNIQUE_VIOLATION_CODE = "23505"
CONNECTION_FAILURE_CODE = "08006"


class StoreError(Exception):
    """Error returned by the table store. `code` follows the backend's codes."""

    def __init__(self, code: str, message: str = "", table: str | None = None) -> None:
        self.code = str(code)
        self.message = message or self.code
        self.table = table
        super().__init__(f"[{self.code}] {self.message}")

    @property
    def is_missing_table(self) -> bool:
        return self.code in MISSING_TABLE_CODES

    @property
    def is_missing_column(self) -> bool:
        return self.code == MISSING_COLUMN_CODE


class AppError(Exception):
    default_code = "system_error"
    default_message = "Não foi possível concluir a operação."
    default_http_status = 500
    default_critical = True

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        http_status: int | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> None:
        self.code = (code or self.default_code).strip()
        self.message = (message or self.default_message).strip()
        self.http_status = int(http_status or self.default_http_status)
        self.critical = self.default_critical
        self.payload = dict(payload or {})
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.payload:
            payload.update(self.payload)
        return payload


class MissingSchemaError(AppError):
    default_code = "missing_schema"
    default_message = "As tabelas do banco de dados não existem. Execute o script de configuração."
    default_http_status = 503
    default_critical = False


class ConnectionFailure(AppError):
    default_code = "connection_error"
    default_message = "Falha ao conectar com o banco de dados. Verifique a URL e a chave de acesso."
    default_http_status = 502
    default_critical = False


class ValidationError(AppError):
    default_code = "validation_error"
    default_message = "Dados inválidos."
    default_http_status = 400
    default_critical = False


class AccessDenied(AppError):
    default_code = "access_denied"
    default_message = "Acesso restrito."
    default_http_status = 403
    default_critical = False


class NotFound(AppError):
    default_code = "not_found"
    default_message = "Registro não encontrado."
    default_http_status = 404
    default_critical = False


class WriteFailed(AppError):
    """An optimistic write was rejected by the store. Local state was NOT rolled back."""

    default_code = "write_failed"
    default_message = "Erro ao salvar no banco."
    default_http_status = 502
    default_critical = False

    def __init__(self, store_error: StoreError, message: str | None = None) -> None:
        self.store_error = store_error
        super().__init__(
            message or f"Erro ao salvar no banco: {store_error.message} (Código: {store_error.code})",
            payload={"store_code": store_error.code},
        )


class MissingColumnError(WriteFailed):
    default_code = "missing_column"
    default_message = (
        "ERRO DE BANCO DE DADOS: o sistema tentou salvar um campo que não existe na tabela. "
        "Execute o script SQL de atualização nas Configurações."
    )
    default_http_status = 409

    def __init__(self, store_error: StoreError) -> None:
        super().__init__(store_error, message=self.default_message)


def write_error(exc: StoreError) -> WriteFailed:
    """Map a store write error to the error surfaced to the operator."""
    if exc.is_missing_column:
        return MissingColumnError(exc)
    return WriteFailed(exc)
