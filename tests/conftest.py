"""
Shared fixtures. Archives are built at test time (see archive_builders), so
no binary fixtures live in the repo.
"""

import pytest

from core import registry
from tests.archive_builders import CLASS_BYTES, write_file, write_zip, zip_bytes


@pytest.fixture(autouse=True)
def builtins_loaded():
    """Every test sees the bundled extractors and matchers."""
    registry.load_builtins()


@pytest.fixture
def sample_tree(tmp_path):
    """
    A small application tree:

        app.jar         com/example/Util.class, com/example/HashMap.class,
                        META-INF/MANIFEST.MF, config/db.properties,
                        lib/inner.jar (org/acme/IOException.class, notes.txt)
        conf/a.properties
        scripts/run.sh
        docs/readme.md
        blob.bin        binary with an embedded "password" string
    """
    root = tmp_path / "tree"
    inner = zip_bytes({
        "org/acme/IOException.class": CLASS_BYTES,
        "notes.txt": "first line\nsecret password here\n",
    })
    write_zip(root / "app.jar", {
        "com/example/Util.class": CLASS_BYTES,
        "com/example/HashMap.class": CLASS_BYTES,
        "META-INF/MANIFEST.MF": "Manifest-Version: 1.0\r\n",
        "config/db.properties": "url=jdbc:h2:mem\npassword=changeit\n",
        "lib/inner.jar": inner,
    })
    write_file(root / "conf" / "a.properties", "password=secret\nuser=admin\n")
    write_file(root / "scripts" / "run.sh", "#!/bin/sh\necho start\n")
    write_file(root / "docs" / "readme.md", "# Readme\n")
    write_file(root / "blob.bin", b"\x00" * 64 + b"password" + b"\x00" * 64)
    return root
