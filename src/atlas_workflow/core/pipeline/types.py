# src/atlas_workflow/core/pipeline/types.py
"""
Tipos canônicos do pipeline do Atlas Workflow.

Este módulo define as estruturas que padronizam a comunicação entre
Steps, BranchGroups e o executor:

    - StepStatus     → enum dos quatro desfechos possíveis de um Step
    - StepOutcome    → resultado imutável (variante etiquetada) de um Step
    - ExecutionRecord → registro transiente de uma invocação

O desfecho de um Step é um valor explícito, e não controle de fluxo por
exceção: o chamador verifica exaustivamente os quatro casos
(`EXECUTED | SKIPPED | OPTIONAL_FAILURE | FATAL_FAILURE`).

Invariantes:
    - Enums possuem valores textuais canônicos
    - StepOutcome é imutável
    - Um Step aparece no máximo uma vez no log de executados e na pilha
      de rollback de um mesmo ExecutionRecord
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

from atlas_workflow.core.errors import WorkflowErrorPayload

if TYPE_CHECKING:
    from atlas_workflow.core.pipeline.step import Step


class StepStatus(str, Enum):
    """
    Desfechos possíveis da execução de um Step.

    Estados definidos:
        - EXECUTED: operação concluída; output gravado no contexto
        - SKIPPED: condição de execução avaliada como falsa
        - OPTIONAL_FAILURE: falha absorvida de Step opcional
        - FATAL_FAILURE: falha de Step obrigatório; dispara rollback
    """
    EXECUTED = "executed"
    SKIPPED = "skipped"
    OPTIONAL_FAILURE = "optional_failure"
    FATAL_FAILURE = "fatal_failure"


@dataclass(frozen=True)
class StepOutcome:
    """
    Resultado imutável da execução de um Step.

    Campos:
        - step_name: nome do Step
        - status: desfecho (`StepStatus`)
        - output: output da operação (apenas EXECUTED)
        - error: payload serializável da falha (falhas apenas)
        - exception: exceção original da falha (falhas apenas)
    """
    step_name: str
    status: StepStatus
    output: Any = None
    error: Optional[WorkflowErrorPayload] = None
    exception: Optional[BaseException] = None

    @classmethod
    def executed(cls, step_name: str, output: Any) -> "StepOutcome":
        return cls(step_name=step_name, status=StepStatus.EXECUTED, output=output)

    @classmethod
    def skipped(cls, step_name: str) -> "StepOutcome":
        return cls(step_name=step_name, status=StepStatus.SKIPPED)

    @classmethod
    def optional_failure(
        cls, step_name: str, *, error: WorkflowErrorPayload, exception: BaseException
    ) -> "StepOutcome":
        return cls(
            step_name=step_name,
            status=StepStatus.OPTIONAL_FAILURE,
            error=error,
            exception=exception,
        )

    @classmethod
    def fatal(
        cls, step_name: str, *, error: WorkflowErrorPayload, exception: BaseException
    ) -> "StepOutcome":
        return cls(
            step_name=step_name,
            status=StepStatus.FATAL_FAILURE,
            error=error,
            exception=exception,
        )

    @property
    def completed(self) -> bool:
        """True quando o Step rodou (com ou sem falha absorvida)."""
        return self.status in (StepStatus.EXECUTED, StepStatus.OPTIONAL_FAILURE)


@dataclass
class ExecutionRecord:
    """
    Registro transiente de uma invocação.

    Campos:
        - workflow: nome do workflow
        - executed: nomes dos Steps concluídos, em ordem de execução
        - skipped: nomes dos Steps pulados, em ordem
        - branch_decisions: rótulos `"<grupo>:<branch>"`, em ordem
        - completed_steps: Steps elegíveis a rollback (pilha LIFO)
        - started_at / ended_at: timestamps UTC da invocação
    """
    workflow: str
    executed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    branch_decisions: List[str] = field(default_factory=list)
    completed_steps: List["Step"] = field(default_factory=list)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    _clock_start: Optional[float] = field(default=None, repr=False)
    _clock_end: Optional[float] = field(default=None, repr=False)

    def start(self) -> None:
        self.started_at = datetime.now(timezone.utc)
        self._clock_start = time.perf_counter()

    def finish(self) -> None:
        if self._clock_end is None:
            self.ended_at = datetime.now(timezone.utc)
            self._clock_end = time.perf_counter()

    def record(self, step: "Step", outcome: StepOutcome) -> None:
        if outcome.status is StepStatus.SKIPPED:
            self.skipped.append(step.name)
        elif outcome.completed:
            self.executed.append(step.name)
            self.completed_steps.append(step)

    def decide(self, group_name: str, branch_name: str) -> str:
        label = f"{group_name}:{branch_name}"
        self.branch_decisions.append(label)
        return label

    @property
    def elapsed_seconds(self) -> Optional[float]:
        if self._clock_start is None or self._clock_end is None:
            return None
        return max(0.0, self._clock_end - self._clock_start)
