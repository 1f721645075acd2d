"""
Atlas Workflow — Canonical Exceptions (v1)

Este módulo define as exceções tipadas do Atlas Workflow.

Objetivo:
- Permitir que o engine levante exceções semânticas tipadas
- Facilitar o mapeamento determinístico para WorkflowErrorPayload
- Carregar sempre o step que falhou, o log parcial e a causa original

Hierarquia:
    WorkflowException
    ├── ConfigurationError
    │   └── WorkflowConfigurationError
    │       ├── DuplicateStepError
    │       └── InvalidStepError
    └── WorkflowRuntimeError
        ├── StepExecutionError
        ├── RollbackError
        ├── WorkflowExecutionError
        └── TransactionError

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- A causa original é preservada em `original_error`, nunca descartada.
- Uma falha de invocação carrega o `ExecutionResult` de falha em `result`
  e, quando houver, a falha de compensação em `rollback_error`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from atlas_workflow.core.errors import (
    CONFIGURATION_ERROR,
    EXECUTION_ERROR,
    ROLLBACK_FAILED,
    STEP_FAILED,
    TRANSACTION_ERROR,
    WORKFLOW_FAILED,
)


@dataclass(eq=False)
class WorkflowException(Exception):
    """Base class para exceções do Atlas Workflow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    code: str = EXECUTION_ERROR
    hint: Optional[str] = None
    original_error: Optional[BaseException] = None
    rollback_error: Optional["RollbackError"] = None
    result: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message

    @property
    def failed_step(self) -> Optional[str]:
        return self.details.get("step")

    @property
    def steps_executed(self) -> List[str]:
        return list(self.details.get("steps_executed", []))

    @property
    def cause(self) -> Optional[BaseException]:
        return self.original_error

    def detailed_message(self) -> str:
        parts = [self.message, f"Code: {self.code}"]
        if self.details:
            parts.append(f"Details: {self.details!r}")
        if self.original_error is not None:
            parts.append(f"Original: {type(self.original_error).__name__}: {self.original_error}")
        if self.rollback_error is not None:
            parts.append(f"Rollback: {self.rollback_error.message}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        original = None
        if self.original_error is not None:
            original = {
                "class": type(self.original_error).__name__,
                "message": str(self.original_error),
            }
        return {
            "error_class": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "timestamp": self.timestamp.isoformat(),
            "details": dict(self.details),
            "hint": self.hint,
            "original_error": original,
            "rollback_error": self.rollback_error.to_dict() if self.rollback_error else None,
        }


# ---------------------------------------------------------------------------
# Configuração / Definição
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ConfigurationError(WorkflowException):
    """Configuração inválida ou inconsistente para execução (nunca retentada)."""

    code: str = CONFIGURATION_ERROR


@dataclass(eq=False)
class WorkflowConfigurationError(ConfigurationError):
    """Definição de workflow estruturalmente inválida."""


@dataclass(eq=False)
class DuplicateStepError(WorkflowConfigurationError):
    """Dois nós irmãos (ou duas branches de um grupo) com o mesmo nome."""


@dataclass(eq=False)
class InvalidStepError(WorkflowConfigurationError):
    """Step declarado com nome ou colaboradores inválidos."""


# ---------------------------------------------------------------------------
# Runtime
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class WorkflowRuntimeError(WorkflowException):
    """Falha ocorrida durante a execução de um workflow."""

    code: str = WORKFLOW_FAILED


@dataclass(eq=False)
class StepExecutionError(WorkflowRuntimeError):
    """Um step obrigatório falhou; carrega nome do step, log parcial e causa."""

    code: str = STEP_FAILED


@dataclass(eq=False)
class RollbackError(WorkflowRuntimeError):
    """Uma compensação falhou; o estado externo pode estar inconsistente.

    É sempre anexada à falha que disparou o rollback, nunca a substitui.
    """

    code: str = ROLLBACK_FAILED

    @property
    def pending_rollbacks(self) -> List[str]:
        return list(self.details.get("pending_rollbacks", []))


@dataclass(eq=False)
class WorkflowExecutionError(WorkflowRuntimeError):
    """Erro inesperado fora da operação de um step (ex.: hook around_step)."""


@dataclass(eq=False)
class TransactionError(WorkflowRuntimeError):
    """O colaborador de armazenamento falhou ao confirmar o envelope transacional."""

    code: str = TRANSACTION_ERROR
