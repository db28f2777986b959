"""Tests for the resourcepack patch command."""

from pathlib import Path

import pytest
import yaml

from resourcepack.tool.resourcepack import main

PARENT = """---
apiVersion: wordpress.samples.example.org/v1alpha1
kind: WordpressInstance
metadata:
  name: blog
  namespace: team-a
  uid: u-123
spec:
  image: wordpress:4.6.1-apache
"""

KUSTOMIZATION = """---
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
resources:
- deployment.yaml
"""

OVERLAYS = """---
- apiVersion: apps/v1
  kind: Deployment
  name: wordpress
  bindings:
  - from: spec.image
    to: spec.image
"""

GROUP = "wordpress.samples.example.org"


@pytest.fixture(name="pack_dir")
def pack_dir_fixture(tmp_path: Path) -> Path:
    """Fixture for a resource pack directory with its inputs."""
    (tmp_path / "parent.yaml").write_text(PARENT)
    (tmp_path / "overlays.yaml").write_text(OVERLAYS)
    pack = tmp_path / "pack"
    pack.mkdir()
    (pack / "kustomization.yaml").write_text(KUSTOMIZATION)
    return tmp_path


def test_patch_in_place(pack_dir: Path) -> None:
    """Test patching the kustomization in its own directory."""
    main(
        [
            "patch",
            str(pack_dir / "parent.yaml"),
            str(pack_dir / "pack"),
            "--overlays",
            str(pack_dir / "overlays.yaml"),
        ]
    )
    doc = yaml.safe_load((pack_dir / "pack" / "kustomization.yaml").read_text())
    assert doc == {
        "apiVersion": "kustomize.config.k8s.io/v1beta1",
        "kind": "Kustomization",
        "resources": ["deployment.yaml"],
        "namePrefix": "blog-",
        "commonLabels": {
            f"{GROUP}/namespace": "blog",
            f"{GROUP}/name": "blog",
            f"{GROUP}/uid": "u-123",
        },
        "patchesStrategicMerge": ["overlaypatch.yaml"],
    }
    overlay = (pack_dir / "pack" / "overlaypatch.yaml").read_text()
    assert overlay == (
        "---\n"
        "apiVersion: apps/v1\n"
        "kind: Deployment\n"
        "metadata:\n"
        "  name: wordpress\n"
        "spec:\n"
        "  image: wordpress:4.6.1-apache\n"
    )


def test_patch_output_dir(pack_dir: Path) -> None:
    """Test writing the results to a separate directory with options."""
    output_dir = pack_dir / "output"
    main(
        [
            "patch",
            str(pack_dir / "parent.yaml"),
            str(pack_dir / "pack" / "kustomization.yaml"),
            "--name-prefix",
            "namespace-name",
            "--no-propagate-labels",
            "--output-dir",
            str(output_dir),
        ]
    )
    doc = yaml.safe_load((output_dir / "kustomization.yaml").read_text())
    assert doc["namePrefix"] == "team-a-blog-"
    assert "commonLabels" not in doc
    assert not (output_dir / "overlaypatch.yaml").exists()
    assert yaml.safe_load(
        (pack_dir / "pack" / "kustomization.yaml").read_text()
    ) == yaml.safe_load(KUSTOMIZATION)


def test_patch_no_name_prefix(pack_dir: Path) -> None:
    """Test leaving the name prefix unchanged."""
    main(
        [
            "patch",
            str(pack_dir / "parent.yaml"),
            str(pack_dir / "pack"),
            "--name-prefix",
            "none",
        ]
    )
    doc = yaml.safe_load((pack_dir / "pack" / "kustomization.yaml").read_text())
    assert "namePrefix" not in doc


def test_patch_error(pack_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test an invalid input exits with an error."""
    (pack_dir / "overlays.yaml").write_text(
        "- apiVersion: v1\n  kind: ConfigMap\n  bindings:\n  - from: metadata.name\n"
        "    to: kind.name\n"
    )
    with pytest.raises(SystemExit) as exc_info:
        main(
            [
                "patch",
                str(pack_dir / "parent.yaml"),
                str(pack_dir / "pack"),
                "--overlays",
                str(pack_dir / "overlays.yaml"),
            ]
        )
    assert exc_info.value.code == 1
    assert "resourcepack error:" in capsys.readouterr().err


def test_patch_invalid_parent(
    pack_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test a parent with malformed metadata exits with an error."""
    (pack_dir / "parent.yaml").write_text(
        "apiVersion: example.org/v1\nkind: WordpressInstance\nmetadata: blog\n"
    )
    with pytest.raises(SystemExit) as exc_info:
        main(["patch", str(pack_dir / "parent.yaml"), str(pack_dir / "pack")])
    assert exc_info.value.code == 1
    assert "metadata is not a mapping" in capsys.readouterr().err
    assert yaml.safe_load(
        (pack_dir / "pack" / "kustomization.yaml").read_text()
    ) == yaml.safe_load(KUSTOMIZATION)
