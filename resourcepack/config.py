"""Configuration objects for resourcepack."""

from dataclasses import dataclass, field

from .manifest import Overlay

NAME_PREFIX_NAME = "name"
NAME_PREFIX_NAMESPACE_NAME = "namespace-name"
NAME_PREFIX_MODES = [NAME_PREFIX_NAME, NAME_PREFIX_NAMESPACE_NAME]


@dataclass
class PatchConfig:
    """Configuration for the patches applied to a Kustomization."""

    name_prefix: str | None = NAME_PREFIX_NAME
    """How the name prefix is derived from the parent, or None to leave it as is."""

    propagate_labels: bool = True
    """Copy the labels of the parent into the common labels."""

    fill_vars: bool = True
    """Point the variables referring to the parent at its name and namespace."""

    overlays: list[Overlay] = field(default_factory=list)
    """Strategic merge patches generated from fields of the parent."""
