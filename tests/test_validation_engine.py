"""Behaviour of the descriptor-versus-deployment comparison engine."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from apps.validator.src.domain import Network, ScriptDescriptor
from apps.validator.src.services.reference_store import DeploymentStore
from apps.validator.src.services.validation import ValidationEngine, parse_index

from tests.deployment_test_utils import cell_dep, descriptor_payload, make_record, write_records


def _descriptor(
    code_hash: str = "0xAABB",
    hash_type: str = "data",
    cell_deps: list[dict[str, Any]] | None = None,
) -> ScriptDescriptor:
    return ScriptDescriptor.model_validate(descriptor_payload(code_hash, hash_type, cell_deps))


@pytest.mark.parametrize(
    ("value", "expected"),
    [("0", 0), ("10", 10), ("0xa", 10), ("0X0A", 10), (" 0x2 ", 2), ("", None), ("abc", None), ("0x", None)],
)
def test_parse_index(value: str, expected: int | None) -> None:
    assert parse_index(value) == expected


def test_matching_descriptor_is_valid_regardless_of_hex_case(engine: ValidationEngine) -> None:
    """Code hashes and tx hashes compare case-insensitively."""

    descriptor = _descriptor(code_hash="0xaabb", cell_deps=[cell_dep("0X1111", "0")])

    result = engine.validate("always_success", "mainnet", descriptor)

    assert result.is_valid is True
    assert result.errors == ()
    assert result.script_name == "always_success"
    assert result.network == "mainnet"


def test_network_enum_is_accepted(engine: ValidationEngine) -> None:
    result = engine.validate("always_success", Network.TESTNET, _descriptor())

    assert result.is_valid is True
    assert result.network == "testnet"


def test_type_descriptor_uses_type_variant(engine: ValidationEngine) -> None:
    result = engine.validate("always_success", "mainnet", _descriptor(code_hash="0xccdd", hash_type="type"))

    assert result.is_valid is True


def test_type_descriptor_with_data_hash_reports_code_hash_mismatch(engine: ValidationEngine) -> None:
    result = engine.validate("always_success", "mainnet", _descriptor(code_hash="0xAABB", hash_type="type"))

    assert result.is_valid is False
    assert result.errors == ("CodeHash mismatch: expected 0xCCDD, got 0xAABB",)


def test_unknown_script_reports_single_error(engine: ValidationEngine) -> None:
    result = engine.validate("foo", "mainnet", _descriptor())

    assert result.is_valid is False
    assert result.errors == ("Script 'foo' not found in deployments",)


def test_missing_network_configuration(engine: ValidationEngine) -> None:
    result = engine.validate("mainnet_only", "testnet", _descriptor())

    assert result.is_valid is False
    assert result.errors == ("No testnet configuration found for script 'mainnet_only'",)


def test_unknown_network_name_is_reported_not_raised(engine: ValidationEngine) -> None:
    result = engine.validate("always_success", "devnet", _descriptor())

    assert result.errors == ("No devnet configuration found for script 'always_success'",)


def test_incomplete_variant_configuration(engine: ValidationEngine) -> None:
    result = engine.validate("no_type_variant", "mainnet", _descriptor(code_hash="0xCCDD", hash_type="type"))

    assert result.is_valid is False
    assert result.errors == (
        "Incomplete mainnet configuration for script 'no_type_variant': missing codeHash for hash type 'type'",
    )


def test_cell_dep_count_mismatch_short_circuits(engine: ValidationEngine) -> None:
    descriptor = _descriptor(cell_deps=[cell_dep("0xdead", "5"), cell_dep("0xbeef", "6")])

    result = engine.validate("always_success", "mainnet", descriptor)

    assert result.errors == ("CellDeps count mismatch: expected 1, got 2",)


def test_missing_cell_deps_count_as_empty(engine: ValidationEngine) -> None:
    descriptor = ScriptDescriptor.model_validate({"codeHash": "0xAABB", "hashType": "data"})

    result = engine.validate("always_success", "mainnet", descriptor)

    assert result.errors == ("CellDeps count mismatch: expected 1, got 0",)


def test_index_compares_numerically(engine: ValidationEngine) -> None:
    """The reference stores index ``10`` for the second dep; ``0xa`` is the same output."""

    descriptor = _descriptor(
        cell_deps=[cell_dep("0xaaaa", "0"), cell_dep("0xbbbb", "0xa", dep_type="dep_group")]
    )

    result = engine.validate("two_deps", "mainnet", descriptor)

    assert result.is_valid is True


def test_unparseable_index_never_matches(engine: ValidationEngine) -> None:
    descriptor = _descriptor(
        cell_deps=[cell_dep("0xaaaa", "zero"), cell_dep("0xbbbb", "10", dep_type="dep_group")]
    )

    result = engine.validate("two_deps", "mainnet", descriptor)

    assert result.errors == ("CellDep 0 index mismatch: expected 0, got 'zero'",)


def test_each_differing_tx_hash_is_reported(engine: ValidationEngine) -> None:
    descriptor = _descriptor(
        cell_deps=[cell_dep("0x0001", "0x0"), cell_dep("0x0002", "10", dep_type="dep_group")]
    )

    result = engine.validate("two_deps", "mainnet", descriptor)

    assert result.errors == (
        "CellDep 0 txHash mismatch: expected 0xAAAA, got 0x0001",
        "CellDep 1 txHash mismatch: expected 0xBBBB, got 0x0002",
    )


def test_errors_accumulate_in_order(engine: ValidationEngine) -> None:
    descriptor = _descriptor(
        code_hash="0x0000",
        cell_deps=[cell_dep("0xaaaa", "0x1", dep_type="dep_group"), cell_dep("0xbbbb", "10", dep_type="code")],
    )

    result = engine.validate("two_deps", "mainnet", descriptor)

    assert result.errors == (
        "CodeHash mismatch: expected 0xAABB, got 0x0000",
        "CellDep 0 depType mismatch: expected code, got dep_group",
        "CellDep 0 index mismatch: expected 0, got 1",
        "CellDep 1 depType mismatch: expected dep_group, got code",
    )


def test_miscased_type_is_compared_with_data_variant_and_flagged(engine: ValidationEngine) -> None:
    """``Type`` is not ``type``: the data variant is consulted and the hash type is reported."""

    result = engine.validate("always_success", "mainnet", _descriptor(code_hash="0xCCDD", hash_type="Type"))

    assert result.is_valid is False
    assert result.errors == (
        "CodeHash mismatch: expected 0xAABB, got 0xCCDD",
        "HashType mismatch: expected one of data, data1, data2, type, got Type",
    )


@pytest.mark.parametrize("hash_type", ["bogus", "DATA", "Data", ""])
def test_unknown_hash_type_is_reported_even_when_code_hash_matches(engine: ValidationEngine, hash_type: str) -> None:
    result = engine.validate("always_success", "mainnet", _descriptor(hash_type=hash_type))

    assert result.is_valid is False
    assert result.errors == (f"HashType mismatch: expected one of data, data1, data2, type, got {hash_type}",)


def test_data_family_hash_type_is_checked_against_own_claim(engine: ValidationEngine) -> None:
    result = engine.validate("always_success", "mainnet", _descriptor(hash_type="data1"))

    assert result.is_valid is True


def test_strict_mode_checks_reference_hash_type(store: DeploymentStore) -> None:
    strict = ValidationEngine(store, strict_hash_type=True)

    data1 = strict.validate("always_success", "mainnet", _descriptor(hash_type="data1"))
    capitalised = strict.validate("always_success", "mainnet", _descriptor(hash_type="Data"))
    exact = strict.validate("always_success", "mainnet", _descriptor(hash_type="data"))

    assert data1.errors == ("HashType mismatch: expected data, got data1",)
    assert capitalised.errors == ("HashType mismatch: expected one of data, data1, data2, type, got Data",)
    assert exact.is_valid is True


def test_strict_mode_requires_reference_hash_type(tmp_path: Path) -> None:
    directory = write_records(tmp_path / "strict", make_record("loose", data_hash_type=None))
    strict = ValidationEngine(DeploymentStore.load(directory), strict_hash_type=True)

    result = strict.validate("loose", "mainnet", _descriptor())

    assert result.errors == (
        "Incomplete mainnet configuration for script 'loose': missing hashType for hash type 'data'",
    )


def test_validation_is_deterministic(engine: ValidationEngine) -> None:
    descriptor = _descriptor(code_hash="0x1234", cell_deps=[])

    first = engine.validate("always_success", "testnet", descriptor)
    second = engine.validate("always_success", "testnet", descriptor)

    assert first == second
    assert first.model_dump_json(by_alias=True) == second.model_dump_json(by_alias=True)


def test_validate_all_preserves_order(engine: ValidationEngine) -> None:
    results = engine.validate_all(
        [
            ("foo", "mainnet", _descriptor()),
            ("always_success", "mainnet", _descriptor()),
            ("mainnet_only", "testnet", _descriptor()),
        ]
    )

    assert [result.script_name for result in results] == ["foo", "always_success", "mainnet_only"]
    assert [result.is_valid for result in results] == [False, True, False]


def test_results_are_immutable(engine: ValidationEngine) -> None:
    result = engine.validate("always_success", "mainnet", _descriptor())

    with pytest.raises(ValidationError):
        result.is_valid = False  # type: ignore[misc]


def test_result_serialises_with_camel_case_keys(engine: ValidationEngine) -> None:
    result = engine.validate("foo", "mainnet", _descriptor())

    assert result.model_dump(by_alias=True) == {
        "scriptName": "foo",
        "network": "mainnet",
        "isValid": False,
        "errors": ("Script 'foo' not found in deployments",),
        "warnings": (),
    }
