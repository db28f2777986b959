"""Library for patching a kustomization directory for a parent resource.

A `KustomizeOperation` applies a chain of patches to a Kustomization and
collects the files generated along the way. The result is written back to a
directory where it can be rendered with `kustomize build`:
```python
from resourcepack import config, kustomize

parent = await kustomize.read_parent_resource(Path("parent.yaml"))
ks = await kustomize.read_kustomization(Path("/path/to/pack"))
operation = kustomize.KustomizeOperation.from_config(config.PatchConfig())
files = operation.apply(parent, ks)
await kustomize.write_kustomization(Path("/path/to/output"), ks, files)
```
"""

import logging
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os
from aiofiles.ospath import isdir
import yaml

from .config import NAME_PREFIX_MODES, NAME_PREFIX_NAME, PatchConfig
from .exceptions import InputException
from .manifest import (
    KUSTOMIZATION_FILE,
    Kustomization,
    Overlay,
    OverlayFile,
    ParentResource,
)
from .patch import (
    LabelPropagator,
    NamePrefixer,
    NamespaceNamePrefixer,
    OverlayGenerator,
    Patcher,
    PatchOverlayGenerator,
    VariantFiller,
)

__all__ = [
    "KustomizeOperation",
    "read_parent_resource",
    "read_kustomization",
    "read_overlays",
    "write_kustomization",
]

_LOGGER = logging.getLogger(__name__)


class KustomizeOperation:
    """Applies a chain of patches and generators to a Kustomization."""

    def __init__(
        self,
        patchers: list[Patcher],
        generators: list[OverlayGenerator] | None = None,
    ) -> None:
        """Initialize KustomizeOperation."""
        self._patchers = patchers
        self._generators = generators or []

    @classmethod
    def from_config(cls, config: PatchConfig) -> "KustomizeOperation":
        """Create the operation for the patches enabled in the configuration."""
        patchers: list[Patcher] = []
        if config.fill_vars:
            patchers.append(VariantFiller())
        if config.name_prefix is not None:
            if config.name_prefix not in NAME_PREFIX_MODES:
                raise InputException(
                    f"Invalid name prefix '{config.name_prefix}', expected one "
                    f"of {NAME_PREFIX_MODES}"
                )
            if config.name_prefix == NAME_PREFIX_NAME:
                patchers.append(NamePrefixer())
            else:
                patchers.append(NamespaceNamePrefixer())
        if config.propagate_labels:
            patchers.append(LabelPropagator())
        generators: list[OverlayGenerator] = []
        if config.overlays:
            generators.append(PatchOverlayGenerator(config.overlays))
        return cls(patchers, generators)

    @property
    def patchers(self) -> list[Patcher]:
        return self._patchers

    @property
    def generators(self) -> list[OverlayGenerator]:
        return self._generators

    def apply(
        self, parent: ParentResource, kustomization: Kustomization
    ) -> list[OverlayFile]:
        """Patch the kustomization in place and return the generated files."""
        for patcher in self._patchers:
            _LOGGER.debug("Applying %s for %s", type(patcher).__name__, parent)
            patcher.patch(parent, kustomization)
        files: list[OverlayFile] = []
        for generator in self._generators:
            _LOGGER.debug("Applying %s for %s", type(generator).__name__, parent)
            files.extend(generator.generate(parent, kustomization))
        return files


async def _read_text(path: Path) -> str:
    try:
        async with aiofiles.open(str(path)) as input_file:
            content = await input_file.read()
    except FileNotFoundError as err:
        raise InputException(f"File not found: {path}") from err
    if not content.strip():
        raise InputException(f"Invalid empty file: {path}")
    return content


def _load_docs(path: Path, content: str) -> list[Any]:
    try:
        return [doc for doc in yaml.safe_load_all(content) if doc is not None]
    except yaml.YAMLError as err:
        raise InputException(f"Unable to parse yaml file {path}: {err}") from err


async def read_parent_resource(path: Path) -> ParentResource:
    """Return the parent resource from a file containing a single object."""
    docs = _load_docs(path, await _read_text(path))
    if len(docs) != 1:
        raise InputException(f"Expected one object in {path}, found {len(docs)}")
    return ParentResource.parse_doc(docs[0])


async def read_kustomization(path: Path) -> Kustomization:
    """Return the Kustomization from a file or a directory containing one."""
    if await isdir(path):
        path = path / KUSTOMIZATION_FILE
    docs = _load_docs(path, await _read_text(path))
    if len(docs) != 1:
        raise InputException(
            f"Expected one Kustomization in {path}, found {len(docs)}"
        )
    return Kustomization.parse_doc(docs[0])


async def read_overlays(path: Path) -> list[Overlay]:
    """Return the overlays in a file.

    The file may contain a list of overlays or one overlay per document.
    """
    overlays: list[Overlay] = []
    for doc in _load_docs(path, await _read_text(path)):
        if isinstance(doc, list):
            overlays.extend(Overlay.parse_doc(item) for item in doc)
        else:
            overlays.append(Overlay.parse_doc(doc))
    return overlays


async def write_kustomization(
    directory: Path, kustomization: Kustomization, files: list[OverlayFile]
) -> None:
    """Write the kustomization and the generated files to the directory."""
    await aiofiles.os.makedirs(str(directory), exist_ok=True)
    async with aiofiles.open(
        str(directory / KUSTOMIZATION_FILE), mode="w"
    ) as kustomization_file:
        await kustomization_file.write(kustomization.yaml())
    for overlay_file in files:
        _LOGGER.debug("Writing %s to %s", overlay_file.name, directory)
        async with aiofiles.open(str(directory / overlay_file.name), mode="wb") as f:
            await f.write(overlay_file.data)
