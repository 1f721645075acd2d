# src/atlas_workflow/core/pipeline/registry.py
"""
Registro estrutural de nós de um escopo do workflow.

Este módulo define o `StepRegistry`, responsável por registrar os nós
(Steps e BranchGroups) de um único escopo — a raiz do workflow ou os
filhos de uma Branch — validando a integridade estrutural antes de
qualquer execução.

O registry garante que:
    - cada nó possua um nome não vazio
    - não existam nomes duplicados entre nós irmãos
    - a ordem de declaração seja preservada explicitamente

Invariantes:
    - A lista de nós reflete exatamente a ordem de registro
    - Nenhum nó inválido é aceito

Limites explícitos:
    - Não valida escopos aninhados (cada escopo tem seu registry)
    - Não executa nós
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from atlas_workflow.core.exceptions import DuplicateStepError, InvalidStepError


@dataclass
class StepRegistry:
    """
    Registro ordenado de nós de um escopo, com nomes únicos.

    `scope` identifica o escopo nas mensagens de erro (ex.: nome do
    workflow ou rótulo `"<grupo>:<branch>"`).
    """

    scope: str = "workflow"
    _nodes: Dict[str, object] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, node: object) -> None:
        name = getattr(node, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise InvalidStepError(
                message="step name must be a non-empty string",
                details={"scope": self.scope, "name": name},
            )

        if name in self._nodes:
            raise DuplicateStepError(
                message=f"Duplicate step name: {name}",
                details={"scope": self.scope, "step": name},
            )

        self._nodes[name] = node
        self._order.append(name)

    def get(self, name: str) -> object:
        return self._nodes[name]

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def list(self) -> List[object]:
        return [self._nodes[name] for name in self._order]
