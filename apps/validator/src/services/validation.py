"""Comparison of SDK-reported script descriptors with reference deployments."""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from apps.validator.src.domain import (
    CellDep,
    HashType,
    Network,
    ScriptDeployment,
    ScriptDescriptor,
    ValidationResult,
)

__all__ = ["ValidationEngine", "parse_index"]


def parse_index(value: str) -> int | None:
    """Return the integer denoted by a decimal or ``0x`` hex index string."""

    text = value.strip()
    try:
        if text[:2].lower() == "0x":
            return int(text[2:], 16)
        return int(text, 10)
    except ValueError:
        return None


def _render_index(value: str) -> str:
    parsed = parse_index(value)
    return str(parsed) if parsed is not None else repr(value)


_KNOWN_HASH_TYPES = tuple(member.value for member in HashType)


def _network_name(network: Network | str) -> str:
    return network.value if isinstance(network, Network) else str(network)


class ValidationEngine:
    """Validate script descriptors against a read-only deployments mapping.

    The engine holds no mutable state and performs no I/O, so one instance can
    serve any number of concurrent callers. Every discrepancy is reported as an
    entry in ``ValidationResult.errors``; nothing is raised for mismatches.

    With ``strict_hash_type`` enabled the data variant's reference ``hashType``
    becomes the expected value for non-``type`` descriptors instead of the
    descriptor's own claim.
    """

    def __init__(
        self,
        deployments: Mapping[str, ScriptDeployment],
        *,
        strict_hash_type: bool = False,
    ) -> None:
        self._deployments = deployments
        self._strict_hash_type = strict_hash_type

    @property
    def strict_hash_type(self) -> bool:
        return self._strict_hash_type

    @property
    def script_count(self) -> int:
        return len(self._deployments)

    def validate(
        self,
        script_name: str,
        network: Network | str,
        descriptor: ScriptDescriptor,
    ) -> ValidationResult:
        """Compare ``descriptor`` with the reference deployment of ``script_name``."""

        network_name = _network_name(network)

        def _rejected(*errors: str) -> ValidationResult:
            return ValidationResult(
                script_name=script_name,
                network=network_name,
                is_valid=False,
                errors=errors,
            )

        deployment = self._deployments.get(script_name)
        if deployment is None:
            return _rejected(f"Script '{script_name}' not found in deployments")

        info = deployment.for_network(network_name)
        if info is None:
            return _rejected(f"No {network_name} configuration found for script '{script_name}'")

        missing: list[str] = []
        if descriptor.hash_type == HashType.TYPE.value:
            variant = info.type
            expected_hash_type: str | None = HashType.TYPE.value
        else:
            variant = info.data
            expected_hash_type = descriptor.hash_type
            if self._strict_hash_type:
                expected_hash_type = variant.hash_type if variant is not None else None
                if not expected_hash_type:
                    missing.append("hashType")

        if variant is None or not variant.code_hash:
            missing.insert(0, "codeHash")
        if missing or variant is None or variant.code_hash is None or expected_hash_type is None:
            return _rejected(
                f"Incomplete {network_name} configuration for script '{script_name}': "
                f"missing {', '.join(missing)} for hash type '{descriptor.hash_type}'"
            )

        errors: list[str] = []

        if descriptor.code_hash.lower() != variant.code_hash.lower():
            errors.append(
                f"CodeHash mismatch: expected {variant.code_hash}, got {descriptor.code_hash}"
            )

        if descriptor.hash_type not in _KNOWN_HASH_TYPES:
            errors.append(
                f"HashType mismatch: expected one of {', '.join(_KNOWN_HASH_TYPES)}, got {descriptor.hash_type}"
            )
        elif descriptor.hash_type != expected_hash_type:
            errors.append(
                f"HashType mismatch: expected {expected_hash_type}, got {descriptor.hash_type}"
            )

        errors.extend(self._compare_cell_deps(info.cell_deps, descriptor.cell_deps))

        return ValidationResult(
            script_name=script_name,
            network=network_name,
            is_valid=not errors,
            errors=tuple(errors),
        )

    def validate_all(
        self,
        scripts: Iterable[tuple[str, Network | str, ScriptDescriptor]],
    ) -> list[ValidationResult]:
        """Validate each ``(name, network, descriptor)`` entry, preserving input order."""

        return [self.validate(name, network, descriptor) for name, network, descriptor in scripts]

    @staticmethod
    def _compare_cell_deps(
        expected: Sequence[CellDep],
        actual: Sequence[CellDep],
    ) -> list[str]:
        if len(expected) != len(actual):
            return [f"CellDeps count mismatch: expected {len(expected)}, got {len(actual)}"]

        errors: list[str] = []
        for position, (want, got) in enumerate(zip(expected, actual)):
            if got.dep_type != want.dep_type:
                errors.append(
                    f"CellDep {position} depType mismatch: expected {want.dep_type}, got {got.dep_type}"
                )

            if got.out_point.tx_hash.lower() != want.out_point.tx_hash.lower():
                errors.append(
                    f"CellDep {position} txHash mismatch: "
                    f"expected {want.out_point.tx_hash}, got {got.out_point.tx_hash}"
                )

            want_index = parse_index(want.out_point.index)
            got_index = parse_index(got.out_point.index)
            if want_index is None or got_index is None or want_index != got_index:
                errors.append(
                    f"CellDep {position} index mismatch: "
                    f"expected {_render_index(want.out_point.index)}, "
                    f"got {_render_index(got.out_point.index)}"
                )
        return errors
