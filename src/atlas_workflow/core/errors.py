"""
Atlas Workflow — Canonical Error Structures (v1)

Este módulo define o padrão canônico de payloads de erro do Atlas Workflow.
Erros são artefatos de domínio e fazem parte do contrato operacional
do engine, devendo ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhum stack trace cru é exposto ao chamador.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WorkflowErrorPayload:
    """
    Payload canônico de erro do Atlas Workflow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de códigos de erro (v1)
# ---------------------------------------------------------------------------

CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
STEP_FAILED = "STEP_FAILED"
ROLLBACK_FAILED = "ROLLBACK_FAILED"
WORKFLOW_FAILED = "WORKFLOW_FAILED"
TRANSACTION_ERROR = "TRANSACTION_ERROR"
EXECUTION_ERROR = "EXECUTION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def step_failed_error(
    *,
    step: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    steps_executed: Optional[List[str]] = None,
    hint: str = "Verifique a operação do step e os dados de entrada mapeados a partir do contexto.",
) -> WorkflowErrorPayload:
    return WorkflowErrorPayload(
        type=STEP_FAILED,
        message=f"Step {step} failed",
        details={
            "step": step,
            "exc_type": exc_type,
            "exc_message": exc_message,
            "steps_executed": list(steps_executed or []),
        },
        hint=hint,
    )


def rollback_failed_error(
    *,
    step: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    pending_rollbacks: Optional[List[str]] = None,
    hint: str = "O estado externo pode estar inconsistente. Compensação manual é necessária; nenhum retry é aplicado.",
) -> WorkflowErrorPayload:
    return WorkflowErrorPayload(
        type=ROLLBACK_FAILED,
        message=f"Rollback failed for step {step}",
        details={
            "step": step,
            "exc_type": exc_type,
            "exc_message": exc_message,
            "pending_rollbacks": list(pending_rollbacks or []),
        },
        hint=hint,
    )


def configuration_error(
    *,
    message: str = "Configuração inválida para execução do workflow",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Revise a definição do workflow (branches, default e nomes de steps) antes de reexecutar.",
) -> WorkflowErrorPayload:
    return WorkflowErrorPayload(
        type=CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
    )


def execution_error(
    *,
    step: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o log do contexto para diagnosticar a falha. Nenhum fallback é aplicado automaticamente.",
) -> WorkflowErrorPayload:
    return WorkflowErrorPayload(
        type=EXECUTION_ERROR,
        message="Falha inesperada durante a execução do workflow",
        details={
            "step": step,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )


def exception_to_error(exc: BaseException, *, step: Optional[str] = None) -> WorkflowErrorPayload:
    """Converte exceções em WorkflowErrorPayload (serializável, acionável).

    Regras:
    - WorkflowException: já vem com code/message/details/hint.
    - Outras exceções: encapsular como EXECUTION_ERROR sem expor stack trace.
    """
    # import local: exceptions depende deste módulo
    from atlas_workflow.core.exceptions import WorkflowException

    if isinstance(exc, WorkflowException):
        details = dict(exc.details or {})
        if step is not None:
            details.setdefault("step", step)
        return WorkflowErrorPayload(
            type=exc.code,
            message=exc.message or "Erro de execução",
            details=details,
            hint=exc.hint,
        )

    return WorkflowErrorPayload(
        type=EXECUTION_ERROR,
        message=str(exc) or "Erro inesperado durante execução",
        details={
            "step": step,
            "exception_class": exc.__class__.__name__,
        },
        hint="Verifique o log do contexto e a operação do step",
    )
