# src/atlas_workflow/core/traceability/__init__.py
"""
Pacote de rastreabilidade do Atlas Workflow.

API pública exposta:
    - WorkflowManifest  → estrutura canônica do Manifest
    - create_manifest   → criação explícita do Manifest
    - add_event         → registro explícito de eventos no Event Log
    - step_started      → início de um Step
    - step_finished     → conclusão de um Step (success | optional_failure)
    - step_skipped      → Step pulado por condição
    - step_failed       → falha fatal de um Step
    - step_rolled_back  → compensação concluída de um Step
    - save_manifest     → persistência em JSON
    - load_manifest     → restauração determinística

Invariantes:
    - O Manifest inicia com `steps` e `events` vazios
    - Eventos nunca são reordenados automaticamente
"""

from .manifest import (
    WorkflowManifest,
    create_manifest,
    add_event,
    step_started,
    step_finished,
    step_skipped,
    step_failed,
    step_rolled_back,
    save_manifest,
    load_manifest,
)

__all__ = [
    "WorkflowManifest",
    "create_manifest",
    "add_event",
    "step_started",
    "step_finished",
    "step_skipped",
    "step_failed",
    "step_rolled_back",
    "save_manifest",
    "load_manifest",
]
