"""Resourcepack patch action."""

from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
    BooleanOptionalAction,
)
import logging
import pathlib
from typing import cast

from resourcepack import kustomize
from resourcepack.config import NAME_PREFIX_MODES, NAME_PREFIX_NAME, PatchConfig
from resourcepack.manifest import Overlay

_LOGGER = logging.getLogger(__name__)

NAME_PREFIX_NONE = "none"


class PatchAction:
    """Resourcepack patch action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "patch",
                help="Patch a kustomization for a parent resource",
                description="""Patches the kustomization of a resource pack with
                    the name prefix, labels, variables and overlays derived from
                    a parent resource. The result can be rendered with
                    kustomize build.""",
            ),
        )
        args.add_argument(
            "parent", type=pathlib.Path, help="Path to the parent resource yaml file"
        )
        args.add_argument(
            "kustomization",
            type=pathlib.Path,
            help="Path to the kustomization file or its directory",
        )
        args.add_argument(
            "--overlays",
            type=pathlib.Path,
            default=None,
            help="Optional yaml file with the overlays to generate",
        )
        args.add_argument(
            "--name-prefix",
            choices=NAME_PREFIX_MODES + [NAME_PREFIX_NONE],
            default=NAME_PREFIX_NAME,
            help="How the name prefix of the rendered resources is derived",
        )
        args.add_argument(
            "--propagate-labels",
            default=True,
            action=BooleanOptionalAction,
            help="Copy the labels of the parent resource into the common labels",
        )
        args.add_argument(
            "--fill-vars",
            default=True,
            action=BooleanOptionalAction,
            help="Point variables referring to the parent resource at it",
        )
        args.add_argument(
            "--output-dir",
            type=pathlib.Path,
            default=None,
            help="Directory to write the results, defaults to the kustomization directory",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        parent: pathlib.Path,
        kustomization: pathlib.Path,
        overlays: pathlib.Path | None,
        name_prefix: str,
        propagate_labels: bool,
        fill_vars: bool,
        output_dir: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        parent_resource = await kustomize.read_parent_resource(parent)
        ks = await kustomize.read_kustomization(kustomization)
        overlay_specs: list[Overlay] = []
        if overlays is not None:
            overlay_specs = await kustomize.read_overlays(overlays)

        config = PatchConfig(
            name_prefix=None if name_prefix == NAME_PREFIX_NONE else name_prefix,
            propagate_labels=propagate_labels,
            fill_vars=fill_vars,
            overlays=overlay_specs,
        )
        operation = kustomize.KustomizeOperation.from_config(config)
        files = operation.apply(parent_resource, ks)

        if output_dir is None:
            output_dir = (
                kustomization if kustomization.is_dir() else kustomization.parent
            )
        _LOGGER.info(
            "Writing patched kustomization for %s to %s", parent_resource, output_dir
        )
        await kustomize.write_kustomization(output_dir, ks, files)
