# src/atlas_workflow/core/pipeline/branch.py
"""
Branching condicional do Atlas Workflow.

Este módulo define:
    - Branch: lista nomeada e ordenada de nós filhos, guardada por uma
      condição opcional (ausência de condição marca a branch default)
    - BranchGroup: lista ordenada de Branches mutuamente exclusivas mais
      uma branch default opcional; executa exatamente uma por invocação

Seleção (`BranchGroup.select`):
    - Branches condicionais são avaliadas na ordem de declaração
    - A primeira condição verdadeira vence; as demais nunca são avaliadas
      nem executadas
    - Exceção em condição equivale a "falso" (próxima branch é avaliada)
    - Nenhuma correspondência → branch default, se declarada

Execução (`BranchGroup.call`):
    - Nenhuma branch selecionada → ConfigurationError com o nome do grupo,
      a quantidade de branches declaradas e a existência de default
    - O rótulo `"<grupo>:<branch>"` é registrado antes dos filhos, de modo
      que decisões externas precedem decisões aninhadas
    - Filhos (Steps ou BranchGroups aninhados) executam em ordem, sem
      limite de profundidade

Invariantes:
    - Um BranchGroup executa no máximo uma Branch por invocação
    - Branches e grupos são imutáveis após a definição
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

from atlas_workflow.core.errors import configuration_error
from atlas_workflow.core.exceptions import ConfigurationError, StepExecutionError

from .context import WorkflowContext
from .step import Predicate, Step, evaluate_predicate
from .types import ExecutionRecord, StepOutcome, StepStatus


DEFAULT_BRANCH_NAME = "otherwise"


@dataclass(frozen=True)
class Branch:
    """Caminho nomeado de um BranchGroup."""

    name: str
    condition: Optional[Predicate] = None
    nodes: Tuple["Node", ...] = ()

    @property
    def is_default(self) -> bool:
        return self.condition is None

    def matches(self, context: WorkflowContext, *, group_name: str) -> bool:
        if self.condition is None:
            return True
        return evaluate_predicate(self.condition, context, owner=f"{group_name}:{self.name}")


@dataclass(frozen=True)
class BranchGroup:
    """Conjunto ordenado de Branches mutuamente exclusivas."""

    name: str
    branches: Tuple[Branch, ...] = ()
    default: Optional[Branch] = None

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def branch_count(self) -> int:
        return len(self.branches) + (1 if self.default is not None else 0)

    def select(self, context: WorkflowContext) -> Optional[Branch]:
        for branch in self.branches:
            if branch.matches(context, group_name=self.name):
                return branch
        return self.default

    def call(
        self,
        context: WorkflowContext,
        actor: Any,
        *,
        record: ExecutionRecord,
        run_node: Optional["NodeRunner"] = None,
        on_selected: Optional[Callable[[Branch, str], None]] = None,
    ) -> Branch:
        """
        Seleciona e executa uma Branch.

        `run_node` executa cada filho; o executor injeta o seu (com hooks e
        rastreabilidade). Sem ele, os filhos executam diretamente e uma
        falha fatal levanta StepExecutionError.
        `on_selected(branch, label)` é chamado após o registro da decisão e
        antes do primeiro filho.
        """
        selected = self.select(context)
        if selected is None:
            payload = configuration_error(
                message="No matching branch found and no default branch defined",
                details={
                    "branch_group": self.name,
                    "branches_count": len(self.branches),
                    "has_default": self.has_default,
                    "steps_executed": list(record.executed),
                },
                hint=f"Declare otherwise() no grupo {self.name} ou revise as condições das branches.",
            )
            raise ConfigurationError(
                message=payload.message,
                details=payload.details,
                hint=payload.hint,
            )

        label = record.decide(self.name, selected.name)
        context.log(step_id=self.name, level="DEBUG", message=f"Branch selected: {label}")
        if on_selected is not None:
            on_selected(selected, label)

        runner = run_node or _direct_runner(context, actor, record)
        for node in selected.nodes:
            runner(node)
        return selected


Node = Union[Step, BranchGroup]
NodeRunner = Callable[[Node], None]


def step_execution_error(outcome: StepOutcome, record: ExecutionRecord) -> StepExecutionError:
    """Constrói a StepExecutionError de um desfecho FATAL_FAILURE."""
    cause = outcome.exception
    payload = outcome.error.to_dict() if outcome.error else {}
    if payload:
        payload["details"]["steps_executed"] = list(record.executed)
    return StepExecutionError(
        message=f"Step {outcome.step_name} failed: {cause}",
        details={
            "step": outcome.step_name,
            "steps_executed": list(record.executed),
            "steps_skipped": list(record.skipped),
            "errors": payload,
        },
        hint=payload.get("hint"),
        original_error=cause,
    )


def _direct_runner(context: WorkflowContext, actor: Any, record: ExecutionRecord) -> NodeRunner:
    def run(node: Node) -> None:
        if isinstance(node, BranchGroup):
            node.call(context, actor, record=record, run_node=run)
            return
        outcome = node.call(context, actor)
        record.record(node, outcome)
        if outcome.status is StepStatus.FATAL_FAILURE:
            raise step_execution_error(outcome, record)

    return run
