# src/atlas_workflow/core/pipeline/definition.py
"""
WorkflowDefinition — definição imutável de um workflow.

Uma definição é construída uma única vez (tipicamente via
`WorkflowBuilder`) e compartilhada somente-leitura entre todas as
invocações. Todos os campos são tuplas ou valores imutáveis.

Hooks de ciclo de vida:
    - before_workflow(context): roda antes de qualquer Step; pode abortar
      a invocação via `context.fail(...)`
    - around_step(step, context, proceed): envolve cada Step; deve retornar
      o `StepOutcome` devolvido por `proceed()`
    - after_workflow(context): roda após o desfecho estar determinado; não
      altera o desfecho
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, Optional, Tuple

from .branch import BranchGroup, Node
from .context import WorkflowContext
from .step import Step
from .types import StepOutcome

if TYPE_CHECKING:
    from atlas_workflow.core.config.settings import EngineSettings
    from atlas_workflow.core.engine.result import ExecutionResult
    from atlas_workflow.core.engine.transaction import TransactionManager


WorkflowHook = Callable[[WorkflowContext], None]
AroundStepHook = Callable[[Step, WorkflowContext, Callable[[], StepOutcome]], StepOutcome]


@dataclass(frozen=True)
class WorkflowDefinition:
    """Sequência ordenada e imutável de nós (Steps e BranchGroups)."""

    name: str
    nodes: Tuple[Node, ...] = ()
    use_transaction: bool = False
    before_hooks: Tuple[WorkflowHook, ...] = ()
    after_hooks: Tuple[WorkflowHook, ...] = ()
    around_hooks: Tuple[AroundStepHook, ...] = ()

    def iter_steps(self) -> Iterator[Step]:
        """Percorre todos os Steps declarados, em profundidade e em ordem."""
        yield from _iter_steps(self.nodes)

    def run(
        self,
        actor: Any,
        params: Optional[Dict[str, Any]] = None,
        *,
        settings: Optional["EngineSettings"] = None,
        transaction_manager: Optional["TransactionManager"] = None,
    ) -> "ExecutionResult":
        """Ponto de entrada único: executa uma invocação do workflow."""
        from atlas_workflow.core.engine.engine import WorkflowExecutor

        executor = WorkflowExecutor(
            self,
            settings=settings,
            transaction_manager=transaction_manager,
        )
        return executor.run(actor, params)


def _iter_steps(nodes: Tuple[Node, ...]) -> Iterator[Step]:
    for node in nodes:
        if isinstance(node, BranchGroup):
            for branch in node.branches:
                yield from _iter_steps(branch.nodes)
            if node.default is not None:
                yield from _iter_steps(node.default.nodes)
        else:
            yield node
