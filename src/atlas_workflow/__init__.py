# src/atlas_workflow/__init__.py
"""
Atlas Workflow — orquestração de workflows com branching e rollback.

Um workflow é uma sequência ordenada e imutável de Steps e BranchGroups,
declarada uma única vez e executada muitas vezes. Cada invocação recebe
um contexto próprio; falhas fatais disparam a compensação LIFO dos Steps
já concluídos.

Uso típico:

    from atlas_workflow import WorkflowBuilder

    builder = WorkflowBuilder("checkout")
    builder.step("validate_order", ValidateOrder)
    builder.step("finalize", Finalize)
    result = builder.build().run(actor, {"order_id": 123})

Arquitetura em alto nível:
    - core.config       → carregamento, merge e hashing de configuração
    - core.pipeline     → contexto, Steps, branches e builder de definições
    - core.engine       → execução, rollback, transação e resultados
    - core.traceability → Manifest e Event Log para auditoria
"""

from .core.config import EngineSettings, load_settings
from .core.engine import ENGINE_VERSION, ExecutionResult, TransactionManager, WorkflowExecutor
from .core.exceptions import (
    ConfigurationError,
    DuplicateStepError,
    InvalidStepError,
    RollbackError,
    StepExecutionError,
    TransactionError,
    WorkflowConfigurationError,
    WorkflowException,
    WorkflowExecutionError,
    WorkflowRuntimeError,
)
from .core.pipeline import (
    Branch,
    BranchGroup,
    Step,
    StepOutcome,
    StepStatus,
    WorkflowBuilder,
    WorkflowContext,
    WorkflowDefinition,
)

__version__ = ENGINE_VERSION

__all__ = [
    "Branch",
    "BranchGroup",
    "ConfigurationError",
    "DuplicateStepError",
    "EngineSettings",
    "ExecutionResult",
    "InvalidStepError",
    "RollbackError",
    "Step",
    "StepExecutionError",
    "StepOutcome",
    "StepStatus",
    "TransactionError",
    "TransactionManager",
    "WorkflowBuilder",
    "WorkflowConfigurationError",
    "WorkflowContext",
    "WorkflowDefinition",
    "WorkflowException",
    "WorkflowExecutionError",
    "WorkflowExecutor",
    "WorkflowRuntimeError",
    "__version__",
    "load_settings",
]
