#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import os
from pathlib import Path

import pytest

SAMPLE_DATA = Path(__file__).parent / "sample-data"
PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Remove AWS settings from the environment and point HOME at an empty
    directory so tests never read the developer's real files."""
    for key in list(os.environ):
        if key.startswith("AWS_"):
            monkeypatch.delenv(key)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def sample_data() -> Path:
    return SAMPLE_DATA


@pytest.fixture
def project_root(monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from the project root, where sample-data commands are
    relative to."""
    monkeypatch.chdir(PROJECT_ROOT)
    return PROJECT_ROOT
