# src/atlas_workflow/core/engine/result.py
"""
Envelope de resultado de uma invocação de workflow.

Este módulo define:
    - ExecutionResult → resultado imutável entregue ao chamador
    - ResultBuilder   → montagem de metadados e envelopes de sucesso/falha

Metadados (`ExecutionResult.metadata`):
    - workflow: nome do workflow
    - steps_executed: Steps concluídos, em ordem (inclui falhas opcionais)
    - steps_skipped: Steps pulados, em ordem
    - branch_decisions: rótulos `"<grupo>:<branch>"` (apenas se houver)
    - duration_ms: duração em milissegundos, arredondada a 2 casas
    - failed_step: nome do Step (ou grupo) que falhou (apenas em falha)

Mensagem de falha, por precedência:
    1. mensagem explícita
    2. `context.errors["message"]` (registrada via `context.fail`)
    3. "Workflow failed"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from atlas_workflow.core.errors import exception_to_error
from atlas_workflow.core.exceptions import WorkflowException
from atlas_workflow.core.pipeline.context import WorkflowContext
from atlas_workflow.core.pipeline.types import ExecutionRecord

if TYPE_CHECKING:
    from atlas_workflow.core.traceability.manifest import WorkflowManifest


SUCCESS_MESSAGE = "Workflow completed successfully"
FAILURE_MESSAGE = "Workflow failed"


@dataclass(frozen=True)
class ExecutionResult:
    """Resultado de uma invocação (sucesso ou falha)."""

    success: bool
    message: str
    context: WorkflowContext
    metadata: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, Any] = field(default_factory=dict)
    error: Optional[BaseException] = None
    manifest: Optional["WorkflowManifest"] = None

    @property
    def failure(self) -> bool:
        return not self.success

    @property
    def failed_step(self) -> Optional[str]:
        return self.metadata.get("failed_step")

    @property
    def steps_executed(self) -> List[str]:
        return list(self.metadata.get("steps_executed", []))

    @property
    def steps_skipped(self) -> List[str]:
        return list(self.metadata.get("steps_skipped", []))

    @property
    def branch_decisions(self) -> List[str]:
        return list(self.metadata.get("branch_decisions", []))

    @property
    def duration_ms(self) -> float:
        return self.metadata["duration_ms"]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "context": self.context.to_dict(),
            "metadata": dict(self.metadata),
        }
        if not self.success:
            data["errors"] = dict(self.errors)
        return data


class ResultBuilder:
    """Monta envelopes de resultado a partir do ExecutionRecord."""

    def __init__(self, record: ExecutionRecord):
        self.record = record

    def duration_ms(self) -> float:
        self.record.finish()
        return round((self.record.elapsed_seconds or 0.0) * 1000, 2)

    def metadata(self, *, failed_step: Optional[str] = None) -> Dict[str, Any]:
        meta: Dict[str, Any] = {
            "workflow": self.record.workflow,
            "steps_executed": list(self.record.executed),
            "steps_skipped": list(self.record.skipped),
        }
        if self.record.branch_decisions:
            meta["branch_decisions"] = list(self.record.branch_decisions)
        meta["duration_ms"] = self.duration_ms()
        if failed_step is not None:
            meta["failed_step"] = failed_step
        return meta

    def success(
        self,
        context: WorkflowContext,
        *,
        manifest: Optional["WorkflowManifest"] = None,
    ) -> ExecutionResult:
        return ExecutionResult(
            success=True,
            message=SUCCESS_MESSAGE,
            context=context,
            metadata=self.metadata(),
            manifest=manifest,
        )

    def failure(
        self,
        context: WorkflowContext,
        *,
        message: Optional[str] = None,
        failed_step: Optional[str] = None,
        error: Optional[BaseException] = None,
        manifest: Optional["WorkflowManifest"] = None,
    ) -> ExecutionResult:
        errors = dict(context.errors)
        if error is not None:
            if isinstance(error, WorkflowException):
                errors["error"] = error.to_dict()
            else:
                errors["error"] = exception_to_error(error, step=failed_step).to_dict()

        return ExecutionResult(
            success=False,
            message=resolve_failure_message(message, context),
            context=context,
            metadata=self.metadata(failed_step=failed_step),
            errors=errors,
            error=error,
            manifest=manifest,
        )


def resolve_failure_message(message: Optional[str], context: WorkflowContext) -> str:
    if message:
        return message
    recorded = context.errors.get("message")
    if recorded:
        return str(recorded)
    return FAILURE_MESSAGE
