"""Shared test fixtures for patchline."""

import os
from pathlib import Path

import pytest

from patchline.config.models import PatchlineConfig
from patchline.testing import LifecycleWorkspace

OLD_FILES = {
    "README.txt": "Product 1.0\n",
    "bin/run.sh": "#!/bin/sh\necho 1\n",
    "conf/settings.ini": "[core]\nthreads=4\n",
    "lib/core.jar": "core-v1",
    "lib/legacy.jar": "legacy",
}

NEW_FILES = {
    "README.txt": "Product 2.0\n",
    "bin/run.sh": "#!/bin/sh\necho 2\n",
    "conf/settings.ini": "[core]\nthreads=4\n",
    "lib/core.jar": "core-v2",
    "lib/extra.jar": "extra",
    "plugins/p/plugin.xml": "<plugin id='p'/>\n",
}


def make_tree(root: Path, files: dict[str, str]) -> Path:
    """Write *files* under *root*; shell scripts get the executable bit."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        if rel.endswith(".sh"):
            os.chmod(path, 0o755)
    return root


@pytest.fixture
def old_tree(tmp_path):
    return make_tree(tmp_path / "data" / "product-1.0", OLD_FILES)


@pytest.fixture
def new_tree(tmp_path):
    return make_tree(tmp_path / "data" / "product-2.0", NEW_FILES)


@pytest.fixture
def workspace(tmp_path, old_tree, new_tree):
    """Old tree copied to run/applyPatch/product-1.0, plus patch and backup paths."""
    return LifecycleWorkspace.create(tmp_path / "run", old_tree, new_tree)


@pytest.fixture
def sample_config():
    return PatchlineConfig()
