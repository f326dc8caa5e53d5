"""Base classes for definition providers."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .models import ClassDeclaration


class DefinitionProvider(ABC):
    """Contract for backends that enumerate and resolve class-like definitions."""

    @abstractmethod
    def definitions(self) -> Iterable[ClassDeclaration]:
        """Yield every definition found under the scanned directory."""

    @abstractmethod
    def resolve(self, name: str) -> Optional[ClassDeclaration]:
        """Return a definition by fully qualified name, including referenced-only ones."""
