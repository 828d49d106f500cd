"""Adapter for the CCC SDK (``@ckb-ccc/core``)."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from apps.validator.src.config import Settings, get_settings
from apps.validator.src.domain import DepType, Network, ScriptDescriptor, SDKLoadError, SDKScript
from apps.validator.src.integrations.npm import InstalledSDK, run_node_script

from .base import NodeRunner

CCC_PACKAGE_NAME = "@ckb-ccc/core"

# Prints {"mainnet": {...}, "testnet": {...}} built from the public clients' known scripts.
CCC_KNOWN_SCRIPTS_SOURCE = """
const { ccc } = require("@ckb-ccc/core");
const clients = {
  mainnet: new ccc.ClientPublicMainnet(),
  testnet: new ccc.ClientPublicTestnet(),
};
const output = {};
for (const [network, client] of Object.entries(clients)) {
  output[network] = client.scripts;
}
const payload = JSON.stringify(output, (_key, value) =>
  typeof value === "bigint" ? value.toString() : value
);
process.stdout.write(payload, () => process.exit(0));
"""

_DEP_TYPE_ALIASES: dict[str, str] = {
    "depGroup": DepType.DEP_GROUP.value,
    "dep_group": DepType.DEP_GROUP.value,
    "code": DepType.CODE.value,
}


def _normalize_cell_dep(entry: Any) -> dict[str, Any]:
    """Flatten CCC's ``{cellDep: {...}, type?}`` wrapper into a plain cell dep."""

    if not isinstance(entry, Mapping):
        raise SDKLoadError(f"Unexpected cell dep entry: {entry!r}")
    cell_dep = entry.get("cellDep", entry)
    if not isinstance(cell_dep, Mapping):
        raise SDKLoadError(f"Unexpected cell dep entry: {entry!r}")

    dep_type = cell_dep.get("depType")
    out_point = cell_dep.get("outPoint")
    if not isinstance(out_point, Mapping):
        raise SDKLoadError(f"Cell dep without outPoint: {entry!r}")

    return {
        "depType": _DEP_TYPE_ALIASES.get(str(dep_type), dep_type),
        "outPoint": {
            "txHash": out_point.get("txHash"),
            "index": str(out_point.get("index")),
        },
    }


def normalize_script_info(payload: Mapping[str, Any]) -> ScriptDescriptor:
    """Convert a CCC ``ScriptInfo`` JSON object into a descriptor."""

    raw_deps = payload.get("cellDeps") or []
    if not isinstance(raw_deps, list):
        raise SDKLoadError(f"cellDeps is not a list: {raw_deps!r}")

    try:
        return ScriptDescriptor.model_validate(
            {
                "codeHash": payload.get("codeHash"),
                "hashType": payload.get("hashType"),
                "cellDeps": [_normalize_cell_dep(dep) for dep in raw_deps],
            }
        )
    except ValidationError as exc:
        raise SDKLoadError(f"Malformed script info reported by CCC: {exc}") from exc


class CCCAdapter:
    """Read the known scripts of CCC's public mainnet and testnet clients."""

    package_name = CCC_PACKAGE_NAME

    def __init__(self, settings: Settings | None = None, *, runner: NodeRunner | None = None) -> None:
        self._settings = settings or get_settings()
        self._runner = runner

    def collect_scripts(self, sdk: InstalledSDK) -> list[SDKScript]:
        payload = self._read_known_scripts(sdk)
        if not isinstance(payload, Mapping):
            raise SDKLoadError("CCC known scripts payload is not an object")

        scripts: list[SDKScript] = []
        for network in (Network.MAINNET.value, Network.TESTNET.value):
            known = payload.get(network) or {}
            if not isinstance(known, Mapping):
                raise SDKLoadError(f"CCC {network} scripts are not an object")
            for name, info in known.items():
                if not isinstance(info, Mapping):
                    raise SDKLoadError(f"CCC {network} script {name} is not an object")
                scripts.append(SDKScript(name=name, network=network, script=normalize_script_info(info)))
        return scripts

    def _read_known_scripts(self, sdk: InstalledSDK) -> Any:
        if self._runner is not None:
            return self._runner(sdk, CCC_KNOWN_SCRIPTS_SOURCE)
        return run_node_script(sdk, CCC_KNOWN_SCRIPTS_SOURCE, settings=self._settings)


__all__ = ["CCC_PACKAGE_NAME", "CCC_KNOWN_SCRIPTS_SOURCE", "CCCAdapter", "normalize_script_info"]
