# src/atlas_workflow/core/__init__.py
"""
Core do Atlas Workflow.

Este pacote contém a implementação canônica do motor de orquestração:
execução sequencial de Steps, branching condicional mutuamente
exclusivo e compensação (rollback) em ordem inversa.

O core é projetado para ser:
    - determinístico
    - testável de forma isolada
    - livre de estado global (configuração explícita via EngineSettings)
    - orientado a contratos explícitos (RunnableOperation, Predicate,
      InputMapper, RollbackFn, TransactionManager)

Componentes principais:
    - config       → resolução de configuração (merge, hashing, EngineSettings)
    - pipeline     → contexto, Step, Branch/BranchGroup, definição e builder
    - engine       → validação, executor, envelope transacional e resultados
    - traceability → Manifest e Event Log por invocação

Limites explícitos:
    - Não contém operações de negócio
    - Não implementa persistência, retries ou coordenação distribuída
"""
