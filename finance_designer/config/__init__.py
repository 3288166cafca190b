"""
finance_designer.config -- single public entrypoint for the field registry.

Responsibility:
    Provides the ONLY way to obtain the ``SystemFieldRegistry`` at runtime
    through ``get_field_registry()``.  No other component reads the YAML
    registry sets directly.

Architecture position:
    Configuration -- YAML-driven registry data, validated on load.  Sits
    above the domain layer; the domain never imports from here.

Invariants enforced:
    - Every loaded voucher type passes ``validate_field_registry``; a broken
      registry is never handed to the converters or the wizard.
    - Each voucher code is declared by exactly one fragment.
    - Deterministic loading: the same YAML fragments always produce the
      same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the sets directory holds no fragments.
    - ``ValueError`` / ``KeyError`` -- malformed fragment, or a voucher code
      declared twice.
    - ``RegistryValidationError`` -- a registry failed its self-test.

Audit relevance:
    Every successful call emits a ``FIELD_REGISTRY_TRACE`` log entry with
    the checksum and per-type field counts, tying a designer session to the
    exact registry data that governed it.
"""

from __future__ import annotations

from pathlib import Path

from finance_designer.config.loader import (
    compute_checksum,
    load_registry_fragments,
    parse_voucher_type_registry,
)
from finance_designer.domain.registry import SystemFieldRegistry, validate_field_registry
from finance_designer.exceptions import RegistryValidationError
from finance_designer.logging_config import get_logger

_logger = get_logger("config")

# Default registry sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_field_registry(config_dir: Path | None = None) -> SystemFieldRegistry:
    """The ONLY public registry entrypoint.

    Contract:
        Builds a fresh ``SystemFieldRegistry`` on every call.  Callers build
        it once at startup and pass it by reference.

    Args:
        config_dir: Override path to the registry sets directory.
            Defaults to finance_designer/config/sets/.

    Raises:
        FileNotFoundError: If the directory holds no ``*.yaml`` fragments.
        ValueError: If two fragments declare the same voucher code.
        RegistryValidationError: If a voucher type fails its self-test.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR

    fragments = load_registry_fragments(sets_dir)
    if not fragments:
        raise FileNotFoundError(f"No field registry fragments found in {sets_dir}")

    registries = [parse_voucher_type_registry(data) for data in fragments]

    seen = set()
    for registry in registries:
        if registry.voucher_type in seen:
            raise ValueError(
                f"Voucher type {registry.voucher_type.value} declared more than once"
            )
        seen.add(registry.voucher_type)

    for registry in registries:
        validation = validate_field_registry(registry)
        for warning in validation.warnings:
            _logger.warning(
                "field_registry_warning",
                extra={"voucher_code": registry.voucher_type.value, "warning": warning},
            )
        if not validation.is_valid:
            raise RegistryValidationError(registry.voucher_type.value, validation.errors)

    system_registry = SystemFieldRegistry(registries)
    checksum = compute_checksum(fragments)

    _logger.info(
        "FIELD_REGISTRY_TRACE",
        extra={
            "trace_type": "FIELD_REGISTRY_TRACE",
            "config_dir": str(sets_dir),
            "checksum": checksum,
            "voucher_types": [r.voucher_type.value for r in registries],
            "field_counts": {
                r.voucher_type.value: {
                    "core": len(r.core_fields),
                    "shared": len(r.shared_fields),
                    "line_columns": len(r.line_columns),
                }
                for r in registries
            },
        },
    )

    return system_registry


__all__ = ["get_field_registry"]
