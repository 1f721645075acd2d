# src/atlas_workflow/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Atlas Workflow.

As exceções aqui definidas representam violações estruturais de
configuração detectadas durante carregamento, merge ou materialização
de `EngineSettings`. Nenhuma delas representa falha de execução de Step.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do Atlas Workflow.

    Esta hierarquia permite:
        - captura genérica de erros de configuração
        - distinção clara entre falhas estruturais e falhas de execução
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de configuração base (defaults)
    não é encontrado no caminho especificado.

    Limites explícitos:
        - Não tenta inferir ou criar defaults automaticamente
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz da configuração não é um dicionário (`dict`)."""


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"raise_on_failure": true}}
        - override: {"engine": "DEBUG"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """


class InvalidSettingsError(ConfigError):
    """Valor de configuração do engine fora do domínio aceito."""


class UnknownConfigSectionError(ConfigError):
    """Seção de topo não reconhecida em um arquivo de configuração do engine."""
