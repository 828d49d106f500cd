"""Domain models shared by the validator components."""

from .deployment import (
    CellDep,
    DepType,
    DeploymentInfo,
    HashType,
    Network,
    OutPoint,
    SDKScript,
    ScriptDeployment,
    ScriptDescriptor,
    ScriptType,
    ScriptVariant,
    TypeIdInfo,
    ValidationResult,
)
from .reports import (
    REPORT_FORMAT_VERSION,
    ResultsDocument,
    ResultsMetadata,
    TestReport,
    TestResult,
    ValidationSummary,
)
from .errors import (
    AdapterNotFoundError,
    DiscoveryError,
    LoadError,
    SDKInstallError,
    SDKLoadError,
    ValidatorError,
)

__all__ = [
    "REPORT_FORMAT_VERSION",
    "ResultsDocument",
    "ResultsMetadata",
    "TestReport",
    "TestResult",
    "ValidationSummary",
    "AdapterNotFoundError",
    "CellDep",
    "DepType",
    "DeploymentInfo",
    "DiscoveryError",
    "HashType",
    "LoadError",
    "Network",
    "OutPoint",
    "SDKInstallError",
    "SDKScript",
    "SDKLoadError",
    "ScriptDeployment",
    "ScriptDescriptor",
    "ScriptType",
    "ScriptVariant",
    "TypeIdInfo",
    "ValidationResult",
    "ValidatorError",
]
