# src/atlas_workflow/core/pipeline/context.py
"""
Contexto de execução compartilhado de uma invocação de workflow.

Este módulo define o `WorkflowContext`, o store chave/valor mutável
utilizado para compartilhar estado explícito entre Steps durante uma
única invocação de um workflow.

O WorkflowContext atua como o único meio permitido de:
    - leitura dos parâmetros de entrada e do ator da invocação
    - troca de outputs entre Steps (indexados pelo nome do Step)
    - registro de falhas absorvidas de Steps opcionais (`<step>_error`)
    - registro de logs estruturados e warnings não fatais
    - sinalização de falha antecipada por hooks (`fail`)

Princípios fundamentais:
    - Isolamento por invocação (cada run possui seu próprio contexto)
    - Chaves ausentes são tratadas como "não presentes", nunca como erro
    - Ausência de estado global compartilhado

Invariantes:
    - O contexto nasce com o ator e os parâmetros achatados como chaves
    - Logs sempre incluem `run_id` e `step_id`
    - Warnings são agrupados por `step_id`

Limites explícitos:
    - Não executa Steps
    - Não persiste dados
    - Nunca é compartilhado entre invocações concorrentes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from atlas_workflow.core.config.settings import level_enabled


ACTOR_KEY = "actor"
ERROR_KEY_SUFFIX = "_error"


def error_key(step_name: str) -> str:
    return f"{step_name}{ERROR_KEY_SUFFIX}"


@dataclass
class WorkflowContext:
    """
    Store chave/valor de uma invocação de workflow.

    O ator fica disponível em `actor` e sob a chave `"actor"`; os
    parâmetros de entrada são copiados como chaves iniciais (um parâmetro
    chamado `actor` prevalece sobre o ator na chave homônima).

    Campos:
        - actor: referência opaca a quem executa a invocação
        - params: cópia dos parâmetros de entrada
        - run_id: identificador único da invocação
        - log_level: nível mínimo dos eventos aceitos por `log`
        - errors: mensagem e detalhes registrados via `fail`
        - events: log estruturado de eventos
        - warnings: warnings por step_id
    """

    actor: Any
    params: Dict[str, Any] = field(default_factory=dict)
    run_id: str = field(default_factory=lambda: uuid4().hex)
    log_level: str = "DEBUG"

    _data: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    errors: Dict[str, Any] = field(default_factory=dict, init=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)
    _failed: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self.params = dict(self.params or {})
        self._data[ACTOR_KEY] = self.actor
        self._data.update(self.params)

    # -----------------------------
    # Data store
    # -----------------------------
    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._data

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def keys(self) -> List[str]:
        return list(self._data)

    def record_error(self, step_name: str, error_info: Any) -> None:
        """Grava `<step_name>_error` sem levantar exceção."""
        self._data[error_key(step_name)] = error_info

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    # -----------------------------
    # Estado de falha (hooks)
    # -----------------------------
    def fail(self, message: str, **errors: Any) -> None:
        self._failed = True
        self.errors["message"] = message
        self.errors.update(errors)

    @property
    def success(self) -> bool:
        return not self._failed

    @property
    def failure(self) -> bool:
        return self._failed

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: Optional[str], level: str, message: str, **extra: Any) -> None:
        level = level.upper()
        if not level_enabled(level, self.log_level):
            return
        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        if step_id not in self.warnings:
            self.warnings[step_id] = []
        self.warnings[step_id].append(message)
