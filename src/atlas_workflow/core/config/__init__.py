# src/atlas_workflow/core/config/__init__.py
"""
Camada de configuração do Atlas Workflow.

Este pacote contém as estruturas e utilitários responsáveis por carregar,
mesclar, validar estruturalmente e identificar a configuração do engine
de workflows.

A configuração no Atlas Workflow é:
    - declarativa (YAML ou JSON)
    - determinística
    - passada explicitamente ao executor (sem singleton global)

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Materialização de `EngineSettings` imutável
    - Geração de hash canônico para rastreabilidade

Limites explícitos:
    - Não executa workflows
    - Não interage com Steps diretamente
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidSettingsError,
    UnknownConfigSectionError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash, compute_payload_hash
from .loader import load_config
from .merge import deep_merge
from .settings import DEFAULT_CONFIG, LOG_LEVELS, EngineSettings, level_enabled, load_settings

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "InvalidSettingsError",
    "UnknownConfigSectionError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "compute_payload_hash",
    "load_config",
    "deep_merge",
    "DEFAULT_CONFIG",
    "EngineSettings",
    "LOG_LEVELS",
    "level_enabled",
    "load_settings",
]
