# src/atlas_workflow/core/engine/__init__.py
"""
Engine do Atlas Workflow.

Este pacote contém a implementação responsável por **validar** e
**executar** definições de workflow.

Componentes principais:
    - validation  → validação estrutural da definição (antes da execução)
    - engine      → WorkflowExecutor: walk dos nós, rollback LIFO, hooks
    - transaction → TransactionManager e TransactionalEnvelope
    - result      → ExecutionResult e ResultBuilder

Princípios fundamentais:
    - Validação e execução são responsabilidades separadas
    - Nenhuma decisão silenciosa é tomada durante a execução
    - Políticas de execução são controladas por EngineSettings explícito

Limites explícitos:
    - Não define operações de negócio
    - Não implementa atomicidade, retries ou paralelismo
"""

from .engine import ENGINE_VERSION, WorkflowExecutor
from .result import ExecutionResult, ResultBuilder
from .transaction import TransactionalEnvelope, TransactionManager
from .validation import validate_definition

__all__ = [
    "ENGINE_VERSION",
    "ExecutionResult",
    "ResultBuilder",
    "TransactionManager",
    "TransactionalEnvelope",
    "WorkflowExecutor",
    "validate_definition",
]
