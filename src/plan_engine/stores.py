"""Collaborator interfaces and simple in-process implementations."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from .models import Catalog, HttpRequest


class CatalogProvider(Protocol):
    def get_catalog(self, alias: str) -> Optional[Catalog]:
        ...


class CredentialProvider(Protocol):
    def get_credential(self, alias: str) -> Optional[str]:
        ...


class InteractiveInput(Protocol):
    def __call__(self, label: str) -> str:
        ...


class HttpClient(Protocol):
    def send(self, request: HttpRequest) -> Any:
        ...


class InMemoryCatalogStore:
    def __init__(self, catalogs: Optional[Dict[str, Catalog]] = None) -> None:
        self._catalogs: Dict[str, Catalog] = dict(catalogs or {})

    def save_catalog(self, alias: str, catalog: Catalog) -> None:
        self._catalogs[alias] = catalog

    def get_catalog(self, alias: str) -> Optional[Catalog]:
        return self._catalogs.get(alias)


class InMemoryCredentialStore:
    def __init__(self, credentials: Optional[Dict[str, str]] = None) -> None:
        self._credentials: Dict[str, str] = dict(credentials or {})

    def save_credential(self, alias: str, credential: str) -> None:
        self._credentials[alias] = credential

    def get_credential(self, alias: str) -> Optional[str]:
        return self._credentials.get(alias)


class ConsolePrompt:
    """Blocks on stdin until the operator enters a value."""

    def __call__(self, label: str) -> str:
        return input(label)
