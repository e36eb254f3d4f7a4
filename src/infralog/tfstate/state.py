"""
Terraform state snapshot model.

A Snapshot is the parsed, immutable form of a Terraform state document.
Field names follow the state file format so a snapshot can be written back
out and read again without loss.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple, Optional, Tuple, Union

from ..errors import ParseError
from ..types import Attributes, StateDocument, Value


class ResourceIDParts(NamedTuple):
    module: str
    resource_type: str
    resource_name: str


def resource_id(module: str, resource_type: str, name: str) -> str:
    """
    Build the join key for a resource, e.g. ``module.network.aws_vpc.main``.
    """
    if module:
        return f"{module}.{resource_type}.{name}"
    return f"{resource_type}.{name}"


def split_resource_id(rid: str) -> ResourceIDParts:
    """
    Split a resource ID back into module path, type and name.

    Everything before the last two segments is the module path, so nested
    modules (``module.a.module.b.type.name``) are handled. IDs with fewer
    than two segments yield empty parts.
    """
    segments = rid.split(".")
    if len(segments) < 2:
        return ResourceIDParts("", "", "")
    if segments[0] == "module" and len(segments) >= 4:
        return ResourceIDParts(
            ".".join(segments[:-2]), segments[-2], segments[-1]
        )
    return ResourceIDParts("", segments[0], segments[1])


@dataclass(frozen=True)
class ResourceInstance:
    attributes: Attributes = field(default_factory=dict)
    schema_version: int = 0
    index_key: Value = None
    private: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.index_key is not None:
            data["index_key"] = self.index_key
        data["schema_version"] = self.schema_version
        data["attributes"] = self.attributes
        if self.private:
            data["private"] = self.private
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "ResourceInstance":
        if not isinstance(data, dict):
            raise ParseError("resource instance must be an object")
        attributes = data.get("attributes")
        if attributes is None:
            attributes = {}
        if not isinstance(attributes, dict):
            raise ParseError("instance attributes must be an object")
        return cls(
            attributes=attributes,
            schema_version=_int_field(data, "schema_version"),
            index_key=data.get("index_key"),
            private=data.get("private") or "",
        )


@dataclass(frozen=True)
class Resource:
    type: str
    name: str
    module: str = ""
    mode: str = ""
    provider: str = ""
    instances: Tuple[ResourceInstance, ...] = ()

    @property
    def id(self) -> str:
        return resource_id(self.module, self.type, self.name)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.module:
            data["module"] = self.module
        data.update(
            {
                "mode": self.mode,
                "type": self.type,
                "name": self.name,
                "provider": self.provider,
                "instances": [instance.to_dict() for instance in self.instances],
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Resource":
        if not isinstance(data, dict):
            raise ParseError("resource must be an object")
        instances = data.get("instances") or []
        if not isinstance(instances, list):
            raise ParseError("resource instances must be a list")
        return cls(
            type=str(data.get("type", "")),
            name=str(data.get("name", "")),
            module=str(data.get("module") or ""),
            mode=str(data.get("mode", "")),
            provider=str(data.get("provider", "")),
            instances=tuple(ResourceInstance.from_dict(i) for i in instances),
        )


@dataclass(frozen=True)
class Output:
    value: Value = None
    type: Value = None
    sensitive: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"value": self.value}
        if self.type is not None:
            data["type"] = self.type
        if self.sensitive:
            data["sensitive"] = True
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Output":
        if not isinstance(data, dict):
            raise ParseError("output must be an object")
        return cls(
            value=data.get("value"),
            type=data.get("type"),
            sensitive=bool(data.get("sensitive", False)),
        )


@dataclass(frozen=True)
class Snapshot:
    version: int = 0
    terraform_version: str = ""
    serial: int = 0
    lineage: str = ""
    resources: Tuple[Resource, ...] = ()
    outputs: Dict[str, Output] = field(default_factory=dict)

    def to_dict(self) -> StateDocument:
        data: StateDocument = {
            "version": self.version,
            "terraform_version": self.terraform_version,
            "serial": self.serial,
            "lineage": self.lineage,
            "resources": [resource.to_dict() for resource in self.resources],
        }
        if self.outputs:
            data["outputs"] = {
                name: output.to_dict() for name, output in self.outputs.items()
            }
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Snapshot":
        """
        Build a Snapshot from a decoded state document.

        Raises:
            ParseError: If the document does not match the state schema
        """
        if not isinstance(data, dict):
            raise ParseError("state did not parse to an object")
        resources = data.get("resources") or []
        if not isinstance(resources, list):
            raise ParseError("state resources must be a list")
        outputs = data.get("outputs") or {}
        if not isinstance(outputs, dict):
            raise ParseError("state outputs must be an object")
        return cls(
            version=_int_field(data, "version"),
            terraform_version=str(data.get("terraform_version", "")),
            serial=_int_field(data, "serial"),
            lineage=str(data.get("lineage", "")),
            resources=tuple(Resource.from_dict(r) for r in resources),
            outputs={name: Output.from_dict(o) for name, o in outputs.items()},
        )


def _int_field(data: Dict[str, Any], name: str) -> int:
    value = data.get(name, 0)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"'{name}' must be an integer, got {value!r}")
    return value


def parse_state(data: Union[bytes, str], source: Optional[str] = None) -> Snapshot:
    """
    Parses Terraform state file content into a Snapshot.

    Args:
        data: Raw state file content
        source: Where the content came from, used in error messages

    Returns:
        Parsed Snapshot

    Raises:
        ParseError: If the content is not valid JSON or not a state document
    """
    where = f" from {source}" if source else ""
    try:
        document = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"failed to parse state{where}: {e}") from e
    try:
        return Snapshot.from_dict(document)
    except ParseError as e:
        raise ParseError(f"failed to parse state{where}: {e}") from e
