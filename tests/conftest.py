# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from collections.abc import Iterator

import pytest

import pathengine.dbc as dbc_module
from pathengine.filesystem import SegmentTrie, parse


@pytest.fixture(autouse=True)
def contracts_enabled(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test with design-by-contract checks enforced."""

    monkeypatch.delenv("PATHENGINE_DBC", raising=False)
    dbc_module.enable_dbc()
    yield
    dbc_module._forced_state = None


@pytest.fixture
def trie() -> SegmentTrie[str]:
    """Return a trie holding entries at ``/a`` and ``/a/b``."""

    built: SegmentTrie[str] = SegmentTrie()
    built.insert(parse("/a"), "entry-a")
    built.insert(parse("/a/b"), "entry-ab")
    return built
