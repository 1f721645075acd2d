# src/atlas_workflow/core/pipeline/__init__.py
"""
Pipeline do Atlas Workflow.

Este pacote define o modelo de execução declarativo:
    - WorkflowContext    → store chave/valor de uma invocação
    - Step               → unidade que envolve uma Runnable Operation
    - Branch/BranchGroup → caminhos mutuamente exclusivos, aninháveis
    - StepOutcome        → desfecho explícito de um Step
    - ExecutionRecord    → log transiente de uma invocação
    - StepRegistry       → unicidade de nomes por escopo
    - WorkflowDefinition → definição imutável e compartilhável
    - WorkflowBuilder    → declaração fluente de definições

Limites explícitos:
    - Não controla transações nem rollback (ver core.engine)
"""

from .branch import DEFAULT_BRANCH_NAME, Branch, BranchGroup, Node
from .builder import BranchBuilder, BranchGroupBuilder, WorkflowBuilder
from .context import WorkflowContext, error_key
from .definition import WorkflowDefinition
from .registry import StepRegistry
from .step import RunnableOperation, Step, evaluate_predicate
from .types import ExecutionRecord, StepOutcome, StepStatus

__all__ = [
    "DEFAULT_BRANCH_NAME",
    "Branch",
    "BranchGroup",
    "BranchBuilder",
    "BranchGroupBuilder",
    "ExecutionRecord",
    "Node",
    "RunnableOperation",
    "Step",
    "StepOutcome",
    "StepRegistry",
    "StepStatus",
    "WorkflowBuilder",
    "WorkflowContext",
    "WorkflowDefinition",
    "error_key",
    "evaluate_predicate",
]
