# src/atlas_workflow/core/config/settings.py
"""
EngineSettings — configuração explícita do executor de workflows.

Este módulo materializa a configuração resolvida (dict) em um valor
imutável `EngineSettings`, passado explicitamente ao executor no momento
da construção. Não existe estado global de configuração no pacote.

Seções reconhecidas:

    engine:
      raise_on_failure: true     # falhas fatais levantam exceção
      log_level: INFO            # nível mínimo dos eventos no contexto
    instrumentation:
      enabled: true              # registra Manifest por invocação
      include_params: true       # parâmetros no evento workflow_started
      include_result: false      # output dos steps em step_finished
      excluded_workflows: []     # workflows sem instrumentação
      manifest_dir: null         # persiste <manifest_dir>/<run_id>.json

Invariantes:
    - Chaves ausentes assumem os valores de `DEFAULT_CONFIG`
    - Valores fora do domínio levantam `InvalidSettingsError`
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigTypeConflictError, InvalidSettingsError
from .hashing import compute_config_hash
from .loader import load_config
from .merge import deep_merge


LOG_LEVELS: Dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        "raise_on_failure": True,
        "log_level": "INFO",
    },
    "instrumentation": {
        "enabled": True,
        "include_params": True,
        "include_result": False,
        "excluded_workflows": [],
        "manifest_dir": None,
    },
}



def level_enabled(level: str, minimum: str) -> bool:
    """True quando `level` atinge o nível mínimo configurado (nomes sem distinção de caixa)."""
    return LOG_LEVELS.get(level.upper(), 0) >= LOG_LEVELS.get(minimum.upper(), 0)


@dataclass(frozen=True)
class EngineSettings:
    """
    Configuração imutável do executor.

    Campos:
        - raise_on_failure: falhas fatais levantam a exceção tipada (True)
          ou retornam o `ExecutionResult` de falha (False)
        - log_level: nível mínimo dos eventos registrados no contexto
        - instrumentation_enabled: habilita o Manifest por invocação
        - include_params: inclui parâmetros da invocação no Manifest
        - include_result: inclui output dos steps no Manifest
        - excluded_workflows: nomes de workflows nunca instrumentados
        - manifest_dir: diretório de persistência do Manifest (opcional)
        - config_hash: hash da configuração efetiva que originou o valor
    """

    raise_on_failure: bool = True
    log_level: str = "INFO"
    instrumentation_enabled: bool = True
    include_params: bool = True
    include_result: bool = False
    excluded_workflows: Tuple[str, ...] = ()
    manifest_dir: Optional[Path] = None
    config_hash: str = field(default_factory=lambda: compute_config_hash(DEFAULT_CONFIG))

    def __post_init__(self) -> None:
        if self.log_level not in LOG_LEVELS:
            raise InvalidSettingsError(
                f"log_level inválido: {self.log_level!r} (aceitos: {sorted(LOG_LEVELS)})"
            )

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "EngineSettings":
        """Materializa settings a partir de uma configuração resolvida (dict)."""
        try:
            effective = deep_merge(DEFAULT_CONFIG, config or {})
        except ConfigTypeConflictError as exc:
            raise InvalidSettingsError(str(exc)) from exc
        engine_cfg = effective.get("engine") or {}
        instr_cfg = effective.get("instrumentation") or {}

        excluded = instr_cfg.get("excluded_workflows") or []
        if not isinstance(excluded, list):
            raise InvalidSettingsError(
                f"instrumentation.excluded_workflows deve ser lista, recebido: {type(excluded).__name__}"
            )

        manifest_dir = instr_cfg.get("manifest_dir")

        return cls(
            raise_on_failure=bool(engine_cfg.get("raise_on_failure", True)),
            log_level=str(engine_cfg.get("log_level", "INFO")).upper(),
            instrumentation_enabled=bool(instr_cfg.get("enabled", True)),
            include_params=bool(instr_cfg.get("include_params", True)),
            include_result=bool(instr_cfg.get("include_result", False)),
            excluded_workflows=tuple(str(name) for name in excluded),
            manifest_dir=Path(manifest_dir) if manifest_dir else None,
            config_hash=compute_config_hash(effective),
        )

    def instruments(self, workflow_name: str) -> bool:
        return self.instrumentation_enabled and workflow_name not in self.excluded_workflows


def load_settings(*, defaults_path: str, local_path: Optional[str] = None) -> EngineSettings:
    """Carrega arquivos de configuração e materializa `EngineSettings`."""
    return EngineSettings.from_config(
        load_config(
            defaults_path=defaults_path,
            local_path=local_path,
            allowed_sections=DEFAULT_CONFIG.keys(),
        )
    )
