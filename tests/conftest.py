"""Shared fixtures: a temporary vault and a canned-response oracle."""

from __future__ import annotations

from pathlib import Path

import pytest

from docreader.config import DocReaderConfig, VaultConfig
from docreader.llm import LLMError
from docreader.vault import FileSystemVault


class StubOracle:
    """TextOracle returning canned completions.

    ``responses`` maps a prompt label (``"tags"``, ``"author-bio"``,
    ``"author-extraction"``) to a completion string, or to an exception
    instance to raise. Every call is recorded in ``calls``.
    """

    def __init__(self, responses: dict[str, str | Exception] | None = None, configured: bool = True):
        self.responses = responses or {}
        self.configured = configured
        self.calls: list[tuple[str, str]] = []

    def is_configured(self) -> bool:
        return self.configured

    def generate(self, prompt: str, *, label: str = "oracle") -> str:
        self.calls.append((label, prompt))
        response = self.responses.get(label)
        if response is None:
            raise LLMError(f"No canned response for {label}")
        if isinstance(response, Exception):
            raise response
        return response

    def labels(self) -> list[str]:
        return [label for label, _prompt in self.calls]


def write_doc(root: Path, rel_path: str, text: str) -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def vault_root(tmp_path: Path) -> Path:
    return tmp_path / "vault"


@pytest.fixture
def vault(vault_root: Path) -> FileSystemVault:
    vault_root.mkdir(parents=True, exist_ok=True)
    return FileSystemVault(vault_root)


@pytest.fixture
def config(vault_root: Path) -> DocReaderConfig:
    return DocReaderConfig(vault=VaultConfig(path=str(vault_root)))


@pytest.fixture
def oracle() -> StubOracle:
    return StubOracle()


@pytest.fixture
def make_oracle():
    """Factory for :class:`StubOracle` instances."""
    return StubOracle


@pytest.fixture
def write(vault_root: Path):
    """Write a document into the temporary vault: ``write("Articles/a.md", text)``."""
    vault_root.mkdir(parents=True, exist_ok=True)

    def _write(rel_path: str, text: str) -> Path:
        return write_doc(vault_root, rel_path, text)

    return _write
