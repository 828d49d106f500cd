"""Script deployment records and SDK-reported script descriptors."""
from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeploymentBaseModel(BaseModel):
    """Base schema mapping camelCase JSON keys onto snake_case attributes."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, frozen=True)


class Network(str, Enum):
    """Networks covered by the reference dataset."""

    MAINNET = "mainnet"
    TESTNET = "testnet"


class HashType(str, Enum):
    """How a script code hash is interpreted on chain."""

    DATA = "data"
    DATA1 = "data1"
    DATA2 = "data2"
    TYPE = "type"


class DepType(str, Enum):
    """Kind of cell referenced by a cell dependency."""

    CODE = "code"
    DEP_GROUP = "dep_group"


class ScriptType(str, Enum):
    """Role a script plays in a transaction."""

    LOCK = "lock"
    TYPE = "type"
    BOTH = "both"
    LIBRARY = "library"


class OutPoint(DeploymentBaseModel):
    """Reference to a transaction output."""

    tx_hash: str = Field(alias="txHash")
    index: str = Field(description="Output index as a decimal or 0x-prefixed hex string.")

    @field_validator("index", mode="before")
    @classmethod
    def stringify_index(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class CellDep(DeploymentBaseModel):
    """Cell required to execute a script."""

    dep_type: str = Field(alias="depType")
    out_point: OutPoint = Field(alias="outPoint")


class ScriptDescriptor(DeploymentBaseModel):
    """Script metadata as reported by an SDK."""

    code_hash: str = Field(alias="codeHash")
    hash_type: str = Field(alias="hashType")
    cell_deps: list[CellDep] = Field(default_factory=list, alias="cellDeps")


class ScriptVariant(DeploymentBaseModel):
    """Expected code hash and hash type for one way of referencing a script."""

    code_hash: str | None = Field(default=None, alias="codeHash")
    hash_type: str | None = Field(default=None, alias="hashType")


class TypeIdInfo(DeploymentBaseModel):
    """Type id script guarding an upgradable deployment."""

    code_hash: str = Field(alias="codeHash")
    hash_type: HashType = Field(default=HashType.TYPE, alias="hashType")
    args: str


class DeploymentInfo(DeploymentBaseModel):
    """Deployment of a script on a single network."""

    data: ScriptVariant | None = None
    type: ScriptVariant | None = None
    cell_deps: list[CellDep] = Field(default_factory=list, alias="cellDeps")
    type_id: TypeIdInfo | None = Field(default=None, alias="typeId")


class ScriptDeployment(DeploymentBaseModel):
    """Trusted description of where and how a script is deployed."""

    name: str = Field(min_length=1)
    description: str = ""
    source_url: str | None = Field(default=None, alias="sourceUrl")
    script_type: ScriptType | None = Field(default=None, alias="scriptType")
    mainnet: DeploymentInfo | None = None
    testnet: DeploymentInfo | None = None

    def for_network(self, network: str) -> DeploymentInfo | None:
        """Return the deployment for ``network`` or ``None`` when it is not configured."""

        if network == Network.MAINNET.value:
            return self.mainnet
        if network == Network.TESTNET.value:
            return self.testnet
        return None


class ValidationResult(DeploymentBaseModel):
    """Outcome of comparing one SDK descriptor with the reference dataset."""

    script_name: str = Field(alias="scriptName")
    network: str
    is_valid: bool = Field(alias="isValid")
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


class SDKScript(NamedTuple):
    """Descriptor reported by an SDK for one script on one network."""

    name: str
    network: str
    script: ScriptDescriptor


__all__ = [
    "CellDep",
    "DepType",
    "DeploymentInfo",
    "HashType",
    "Network",
    "OutPoint",
    "SDKScript",
    "ScriptDeployment",
    "ScriptDescriptor",
    "ScriptType",
    "ScriptVariant",
    "TypeIdInfo",
    "ValidationResult",
]
