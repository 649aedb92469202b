from abc import ABC, abstractmethod
from typing import List, Optional

from vintner.domain.models import (
    ServiceConfig,
    Varietal,
    Winery,
    Wine,
    WineList,
)


class CatalogStore(ABC):
    """
    Abstract base class for catalog storage.

    Implementations keep every collection in memory in file order. Saving a
    record with an existing id replaces it in place; a new id is appended.
    Referential integrity is enforced by the Catalog, not by the store.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the storage subsystem (e.g. load from disk)."""
        pass

    @abstractmethod
    def get_config(self) -> ServiceConfig:
        """Retrieve service configuration."""
        pass

    @abstractmethod
    def save_config(self, config: ServiceConfig) -> None:
        """Save service configuration."""
        pass

    # Varietals

    @abstractmethod
    def list_varietals(self) -> List[Varietal]:
        pass

    @abstractmethod
    def get_varietal(self, varietal_id: str) -> Optional[Varietal]:
        pass

    @abstractmethod
    def save_varietal(self, varietal: Varietal) -> None:
        pass

    @abstractmethod
    def delete_varietal(self, varietal_id: str) -> None:
        pass

    # Wineries

    @abstractmethod
    def list_wineries(self) -> List[Winery]:
        pass

    @abstractmethod
    def get_winery(self, winery_id: str) -> Optional[Winery]:
        pass

    @abstractmethod
    def save_winery(self, winery: Winery) -> None:
        pass

    @abstractmethod
    def delete_winery(self, winery_id: str) -> None:
        pass

    # Wines

    @abstractmethod
    def list_wines(self) -> List[Wine]:
        pass

    @abstractmethod
    def get_wine(self, wine_id: str) -> Optional[Wine]:
        pass

    @abstractmethod
    def save_wine(self, wine: Wine) -> None:
        pass

    @abstractmethod
    def delete_wine(self, wine_id: str) -> None:
        pass

    # Wine lists

    @abstractmethod
    def list_wine_lists(self) -> List[WineList]:
        pass

    @abstractmethod
    def get_wine_list(self, list_id: str) -> Optional[WineList]:
        pass

    @abstractmethod
    def save_wine_list(self, wine_list: WineList) -> None:
        pass

    @abstractmethod
    def delete_wine_list(self, list_id: str) -> None:
        pass
