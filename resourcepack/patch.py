"""Library of patches applied to a Kustomization on behalf of a parent resource.

Each patcher implements a single rule that mutates the Kustomization in place,
for example to prefix the names of all rendered resources with the name of the
parent resource so that multiple instances do not collide:
```python
from resourcepack import patch

patch.NamePrefixer().patch(parent, kustomization)
print(kustomization.name_prefix)
```

Generators also produce files that must be written next to the
`kustomization.yaml` before it is built:
```python
generator = patch.PatchOverlayGenerator(overlays)
for overlay_file in generator.generate(parent, kustomization):
    print(f"Generated {overlay_file.name}")
```
"""

from abc import ABC, abstractmethod
import logging
from typing import Any

import yaml

from . import fields
from .exceptions import OverlayException
from .manifest import Kustomization, Overlay, OverlayFile, ParentResource

__all__ = [
    "Patcher",
    "OverlayGenerator",
    "VariantFiller",
    "NamePrefixer",
    "NamespaceNamePrefixer",
    "LabelPropagator",
    "PatchOverlayGenerator",
]

_LOGGER = logging.getLogger(__name__)

OVERLAY_PATCH_FILE = "overlaypatch.yaml"
DOCUMENT_SEPARATOR = "---\n"


class Patcher(ABC):
    """A rule that mutates a Kustomization for a parent resource."""

    @abstractmethod
    def patch(self, parent: ParentResource, kustomization: Kustomization) -> None:
        """Apply the patch to the kustomization in place."""


class OverlayGenerator(ABC):
    """A rule that generates files referenced by a Kustomization."""

    @abstractmethod
    def generate(
        self, parent: ParentResource, kustomization: Kustomization
    ) -> list[OverlayFile]:
        """Return the generated files after registering them in the kustomization."""


class VariantFiller(Patcher):
    """Points the variables that refer to the parent resource at its name and namespace."""

    def patch(self, parent: ParentResource, kustomization: Kustomization) -> None:
        if not kustomization.vars:
            return
        gvk = parent.gvk
        for var in kustomization.vars:
            if var.obj_ref.gvk != gvk:
                continue
            _LOGGER.debug("Filling var %s with %s", var.name, parent)
            var.obj_ref.name = parent.name
            var.obj_ref.namespace = parent.namespace or None


class NamePrefixer(Patcher):
    """Adds the name of the parent resource as the name prefix."""

    def patch(self, parent: ParentResource, kustomization: Kustomization) -> None:
        kustomization.name_prefix = f"{parent.name}-"


class NamespaceNamePrefixer(Patcher):
    """Adds the namespace and name of the parent resource as the name prefix."""

    def patch(self, parent: ParentResource, kustomization: Kustomization) -> None:
        kustomization.name_prefix = f"{parent.namespace}-{parent.name}-"


class LabelPropagator(Patcher):
    """Copies the labels of the parent resource into the common labels.

    The name, uid and namespace (when set) of the parent resource are also added
    as labels keyed by its API group so that all rendered resources can be
    traced back to it. Labels of the parent resource take precedence.
    """

    def patch(self, parent: ParentResource, kustomization: Kustomization) -> None:
        if kustomization.common_labels is None:
            kustomization.common_labels = {}
        labels = kustomization.common_labels
        group = parent.gvk.group
        if parent.namespace:
            # The value is the parent name, not its namespace.
            labels[f"{group}/namespace"] = parent.name
        labels[f"{group}/name"] = parent.name
        labels[f"{group}/uid"] = str(parent.uid)
        labels.update(parent.labels)


def _overlay_object(overlay: Overlay) -> dict[str, Any]:
    """Return the skeleton of the object patched by the overlay."""
    obj: dict[str, Any] = {
        "apiVersion": overlay.api_version,
        "kind": overlay.kind,
    }
    for key, value in (("name", overlay.name), ("namespace", overlay.namespace)):
        if value:
            fields.set_nested_field(obj, value, ["metadata", key])
        else:
            fields.remove_nested_field(obj, ["metadata", key])
    return obj


class PatchOverlayGenerator(OverlayGenerator):
    """Generates strategic merge patches from values of the parent resource.

    All overlays are written as separate documents of a single file that is
    added to the patches of the kustomization.
    """

    def __init__(self, overlays: list[Overlay]) -> None:
        """Initialize PatchOverlayGenerator."""
        self._overlays = overlays

    @property
    def overlays(self) -> list[Overlay]:
        """The overlays that are generated."""
        return self._overlays

    def generate(
        self, parent: ParentResource, kustomization: Kustomization
    ) -> list[OverlayFile]:
        if not self._overlays:
            return []
        content = ""
        for overlay in self._overlays:
            obj = _overlay_object(overlay)
            for binding in overlay.bindings:
                value, found = parent.nested_field(
                    fields.split_path(binding.from_path)
                )
                if not found:
                    _LOGGER.debug(
                        "Skipping binding %s of %s, field not found in %s",
                        binding.from_path,
                        overlay.kind,
                        parent,
                    )
                    continue
                fields.set_nested_field(obj, value, fields.split_path(binding.to_path))
            try:
                document = yaml.safe_dump(obj, sort_keys=False)
            except yaml.YAMLError as err:
                raise OverlayException(
                    f"Unable to serialize overlay {overlay.kind} for {parent}: {err}"
                ) from err
            # A separator also precedes the first document
            content = f"{content}{DOCUMENT_SEPARATOR}{document}"

        if kustomization.patches_strategic_merge is None:
            kustomization.patches_strategic_merge = []
        kustomization.patches_strategic_merge.append(OVERLAY_PATCH_FILE)
        _LOGGER.debug(
            "Generated %s with %d overlays for %s",
            OVERLAY_PATCH_FILE,
            len(self._overlays),
            parent,
        )
        return [OverlayFile(name=OVERLAY_PATCH_FILE, data=content.encode("utf-8"))]
