# src/atlas_workflow/core/config/loader.py
"""
Loader de configuração do Atlas Workflow.

A configuração do executor é resolvida a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional, ignorado se ausente)

Cada arquivo é lido pelo parser associado à sua extensão e precisa ter
um mapeamento na raiz. Quando `allowed_sections` é informado, chaves de
topo fora desse conjunto são rejeitadas arquivo a arquivo, de modo que
um erro de digitação (`instrumentaton:`) nunca é descartado em silêncio.

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults
    - Arquivo vazio equivale a `{}`

Limites explícitos:
    - Não valida valores (ver `settings.EngineSettings.from_config`)
"""

import json
from pathlib import Path
from typing import IO, Any, Callable, Dict, Iterable, Optional

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnknownConfigSectionError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


_PARSERS: Dict[str, Callable[[IO[str]], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def _read_mapping(path: Path) -> Dict[str, Any]:
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        raise UnsupportedConfigFormatError(
            f"Formato não suportado: {path.suffix or '<sem extensão>'} (aceitos: {sorted(_PARSERS)})"
        )

    with path.open("r", encoding="utf-8") as fh:
        data = parser(fh)

    data = {} if data is None else data
    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"{path.name}: raiz deve ser um mapeamento, recebido: {type(data).__name__}"
        )
    return data


def _check_sections(data: Dict[str, Any], path: Path, allowed: Optional[Iterable[str]]) -> None:
    if allowed is None:
        return
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise UnknownConfigSectionError(
            f"{path.name}: seções desconhecidas {unknown} (aceitas: {sorted(allowed)})"
        )


def load_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
    allowed_sections: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    """
    Carrega defaults + overrides locais e devolve a configuração resolvida.

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults não existir.
        UnsupportedConfigFormatError: Extensão sem parser registrado.
        InvalidConfigRootTypeError: Raiz do arquivo não é um mapeamento.
        UnknownConfigSectionError: Seção de topo fora de `allowed_sections`.
        ConfigTypeConflictError: Conflito estrutural durante o merge.
    """
    allowed = tuple(allowed_sections) if allowed_sections is not None else None

    defaults_file = Path(defaults_path)
    if not defaults_file.exists():
        raise DefaultsNotFoundError(f"Arquivo de defaults não encontrado: {defaults_file}")
    resolved = _read_mapping(defaults_file)
    _check_sections(resolved, defaults_file, allowed)

    if local_path is None or not Path(local_path).exists():
        return resolved

    local_file = Path(local_path)
    overrides = _read_mapping(local_file)
    _check_sections(overrides, local_file, allowed)
    return deep_merge(resolved, overrides)
