"""Representation of the objects used to patch a kustomization.

The parent resource is the custom resource that a resource pack is rendered
for. It is kept in its unstructured form since its schema is owned by the
caller. The kustomization and its overlays are modeled as dataclasses that
are parsed from, and serialized back to, their yaml documents.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from mashumaro import DataClassDictMixin, field_options
from mashumaro.exceptions import InvalidFieldValue, MissingField
from mashumaro.config import BaseConfig
import yaml

from . import fields
from .exceptions import InputException

__all__ = [
    "Gvk",
    "ParentResource",
    "Target",
    "FieldSelector",
    "Var",
    "Kustomization",
    "Binding",
    "Overlay",
    "OverlayFile",
]


KUSTOMIZE_API_VERSION = "kustomize.config.k8s.io/v1beta1"
KUSTOMIZE_DOMAIN = "kustomize.config.k8s.io"
KUSTOMIZE_KIND = "Kustomization"
KUSTOMIZATION_FILE = "kustomization.yaml"

# Keys of a kustomization document and the container type they must hold
_KUSTOMIZATION_LIST_KEYS = ["resources", "vars", "patchesStrategicMerge"]
_KUSTOMIZATION_MAP_KEYS = ["commonLabels", "commonAnnotations"]


@dataclass(frozen=True)
class Gvk:
    """Group, version and kind of a kubernetes resource."""

    group: str
    version: str
    kind: str

    @classmethod
    def parse(cls, api_version: str, kind: str) -> "Gvk":
        """Build a Gvk from an apiVersion such as `apps/v1` or `v1`."""
        group, _, version = api_version.rpartition("/")
        return cls(group=group, version=version, kind=kind)

    @property
    def api_version(self) -> str:
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


@dataclass
class ParentResource:
    """The custom resource that a kustomization is patched for.

    The content is the unstructured kubernetes object and is never modified.
    """

    content: dict[str, Any]
    """The unstructured content of the resource."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ParentResource":
        """Parse a ParentResource from a kubernetes resource."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid object is not a mapping: {doc}")
        if not doc.get("apiVersion"):
            raise InputException(f"Invalid object missing apiVersion: {doc}")
        if not doc.get("kind"):
            raise InputException(f"Invalid object missing kind: {doc}")
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid object missing metadata: {doc}")
        if not isinstance(metadata, dict):
            raise InputException(f"Invalid object metadata is not a mapping: {doc}")
        if not metadata.get("name"):
            raise InputException(f"Invalid object missing metadata.name: {doc}")
        if not isinstance(metadata.get("labels") or {}, dict):
            raise InputException(
                f"Invalid object metadata.labels is not a mapping: {doc}"
            )
        return cls(content=doc)

    @property
    def api_version(self) -> str:
        return str(self.content.get("apiVersion", ""))

    @property
    def kind(self) -> str:
        return str(self.content.get("kind", ""))

    @property
    def gvk(self) -> Gvk:
        return Gvk.parse(self.api_version, self.kind)

    @property
    def _metadata(self) -> dict[str, Any]:
        return self.content.get("metadata") or {}

    @property
    def name(self) -> str:
        return str(self._metadata.get("name") or "")

    @property
    def namespace(self) -> str:
        return str(self._metadata.get("namespace") or "")

    @property
    def uid(self) -> str:
        return str(self._metadata.get("uid") or "")

    @property
    def labels(self) -> dict[str, str]:
        labels = self._metadata.get("labels") or {}
        return {str(key): str(value) for key, value in labels.items()}

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def nested_field(self, path: list[str]) -> tuple[Any, bool]:
        """Return a copy of the value at the path and whether it exists."""
        return fields.nested_field(self.content, path)

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespaced_name}"


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all kustomize manifest objects."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class Target(BaseManifest):
    """The object a kustomize variable refers to."""

    kind: str
    """The kind of the referred object."""

    name: str
    """The name of the referred object."""

    api_version: str | None = field(
        metadata=field_options(alias="apiVersion"), default=None
    )
    """The apiVersion of the referred object, takes precedence over group and version."""

    group: str | None = None
    """The API group of the referred object."""

    version: str | None = None
    """The API version of the referred object."""

    namespace: str | None = None
    """The namespace of the referred object."""

    @property
    def gvk(self) -> Gvk:
        """Return the group, version and kind declared by the reference."""
        if self.api_version and "/" in self.api_version:
            return Gvk.parse(self.api_version, self.kind)
        return Gvk(
            group=self.group or "",
            version=self.api_version or self.version or "",
            kind=self.kind,
        )


@dataclass
class FieldSelector(BaseManifest):
    """The field of the referred object holding the value of a variable."""

    field_path: str | None = field(
        metadata=field_options(alias="fieldpath"), default=None
    )


@dataclass
class Var(BaseManifest):
    """A kustomize variable that is substituted when building."""

    name: str
    """The name of the variable."""

    obj_ref: Target = field(metadata=field_options(alias="objref"))
    """The object the value is read from."""

    field_ref: Optional[FieldSelector] = field(
        metadata=field_options(alias="fieldref"), default=None
    )
    """The field of the object the value is read from."""


@dataclass
class Kustomization(BaseManifest):
    """A kustomize Kustomization, the contents of a `kustomization.yaml` file.

    Only the fields that are patched are modeled explicitly. Any other fields in
    the original document are kept in `contents` and written back as is.
    """

    api_version: str = field(
        metadata=field_options(alias="apiVersion"), default=KUSTOMIZE_API_VERSION
    )
    """The apiVersion of the kustomization."""

    kind: str = KUSTOMIZE_KIND
    """The kind of the object."""

    resources: list[str] | None = None
    """The resources included in the kustomization."""

    namespace: str | None = None
    """The namespace set on all resources."""

    name_prefix: str | None = field(
        metadata=field_options(alias="namePrefix"), default=None
    )
    """The prefix added to the names of all resources."""

    name_suffix: str | None = field(
        metadata=field_options(alias="nameSuffix"), default=None
    )
    """The suffix added to the names of all resources."""

    common_labels: dict[str, str] | None = field(
        metadata=field_options(alias="commonLabels"), default=None
    )
    """Labels added to all resources and selectors."""

    common_annotations: dict[str, str] | None = field(
        metadata=field_options(alias="commonAnnotations"), default=None
    )
    """Annotations added to all resources."""

    vars: list[Var] | None = None
    """Variables substituted in the resources when building."""

    patches_strategic_merge: list[str] | None = field(
        metadata=field_options(alias="patchesStrategicMerge"), default=None
    )
    """Files containing strategic merge patches applied to the resources."""

    contents: dict[str, Any] | None = field(
        metadata={"serialize": "omit"}, default=None
    )
    """Contents of the raw Kustomization document."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "Kustomization":
        """Parse a Kustomization from a kustomization document."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid Kustomization is not a mapping: {doc}")
        if (api_version := doc.get("apiVersion")) and not api_version.startswith(
            KUSTOMIZE_DOMAIN
        ):
            raise InputException(
                f"Invalid Kustomization expected '{KUSTOMIZE_DOMAIN}': {doc}"
            )
        if (kind := doc.get("kind")) and kind != KUSTOMIZE_KIND:
            raise InputException(
                f"Invalid Kustomization expected kind '{KUSTOMIZE_KIND}': {doc}"
            )
        for key in _KUSTOMIZATION_LIST_KEYS:
            if (value := doc.get(key)) is not None and not isinstance(value, list):
                raise InputException(
                    f"Invalid Kustomization field '{key}' is not a list: {doc}"
                )
        for key in _KUSTOMIZATION_MAP_KEYS:
            if (value := doc.get(key)) is not None and not isinstance(value, dict):
                raise InputException(
                    f"Invalid Kustomization field '{key}' is not a mapping: {doc}"
                )
        try:
            ks = cls.from_dict(doc)
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid Kustomization: {err}") from err
        ks.contents = doc
        return ks

    def to_doc(self) -> dict[str, Any]:
        """Return the kustomization document including unmodeled fields."""
        doc = dict(self.contents or {})
        doc.update(self.to_dict())
        return doc

    def yaml(self) -> str:
        """Return a YAML string representation of the kustomization document."""
        return yaml.dump(self.to_doc(), sort_keys=False)


@dataclass
class Binding(BaseManifest):
    """Copies the value of a field of the parent resource into an overlay."""

    from_path: str = field(metadata=field_options(alias="from"))
    """Dotted path of the field in the parent resource."""

    to_path: str = field(metadata=field_options(alias="to"))
    """Dotted path of the field in the overlay object."""


@dataclass
class Overlay(BaseManifest):
    """An object patched with values of the parent resource.

    The object is identified by its apiVersion, kind, name and namespace and is
    applied as a strategic merge patch on the rendered resources.
    """

    api_version: str = field(metadata=field_options(alias="apiVersion"))
    """The apiVersion of the patched object."""

    kind: str
    """The kind of the patched object."""

    name: str | None = None
    """The name of the patched object."""

    namespace: str | None = None
    """The namespace of the patched object."""

    bindings: list[Binding] = field(default_factory=list)
    """The fields copied from the parent resource into the patch."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "Overlay":
        """Parse an Overlay from its document."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid Overlay is not a mapping: {doc}")
        if not doc.get("apiVersion"):
            raise InputException(f"Invalid Overlay missing apiVersion: {doc}")
        if not doc.get("kind"):
            raise InputException(f"Invalid Overlay missing kind: {doc}")
        try:
            return cls.from_dict(doc)
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid Overlay: {err}") from err


@dataclass
class OverlayFile:
    """A generated file that is written next to the kustomization."""

    name: str
    """The file name, relative to the kustomization directory."""

    data: bytes
    """The raw contents of the file."""
