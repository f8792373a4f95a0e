# =============================================================================
# compute/registry.py - UDF Registry
# =============================================================================
# Maps providers and their UDFs by id.
#
# UDFs are addressed by a composite id "provider_id:udf_id", for example
# "petro:vshale_linear".
#
# The registry is built once at startup, then frozen and shared by
# reference. After freeze() it is safe for concurrent readers because
# nothing mutates it.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from compute.errors import DuplicateProviderError, DuplicateUdfError
from compute.udf import Udf, UdfProvider

logger = logging.getLogger(__name__)


def make_udf_id(provider_id: str, udf_id: str) -> str:
    return f"{provider_id}:{udf_id}"


@dataclass
class ProviderInfo:
    """Provider summary for listings."""
    id: str
    name: str
    version: str
    description: str
    udf_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "udf_count": self.udf_count,
        }


@dataclass
class UdfInfo:
    """UDF summary for listings and search."""
    full_id: str
    provider_id: str
    name: str
    category: str
    description: str
    version: str
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "full_id": self.full_id,
            "provider_id": self.provider_id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "version": self.version,
            "tags": list(self.tags),
        }


class UdfRegistry:
    """
    Registry of UDF providers.

    Usage:
        registry = UdfRegistry()
        registry.register_provider(CoreProvider())
        registry.freeze()

        udf = registry.get_udf("core:moving_average")
    """

    def __init__(self):
        self._providers: dict[str, UdfProvider] = {}
        self._udfs: dict[str, Udf] = {}
        self._udf_providers: dict[str, str] = {}
        self._frozen = False

    def __repr__(self) -> str:
        return f"UdfRegistry(providers={self.provider_count()}, udfs={self.udf_count()})"

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register_provider(self, provider: UdfProvider) -> None:
        """
        Register a provider and all of its UDFs.

        Registration is all-or-nothing: if any UDF id collides, none of the
        provider's UDFs are added.

        Raises:
            ProviderNotAvailableError: provider.is_available() refused
            DuplicateProviderError: provider id already registered
            DuplicateUdfError: a composite UDF id already registered
            RuntimeError: the registry is frozen
        """
        if self._frozen:
            raise RuntimeError("UDF registry is frozen; register providers at startup")

        provider_id = provider.id
        provider.is_available()

        if provider_id in self._providers:
            raise DuplicateProviderError(provider_id)

        staged: dict[str, Udf] = {}
        for udf in provider.load_udfs():
            full_id = make_udf_id(provider_id, udf.id)
            if full_id in self._udfs or full_id in staged:
                raise DuplicateUdfError(full_id)
            staged[full_id] = udf

        self._providers[provider_id] = provider
        for full_id, udf in staged.items():
            self._udfs[full_id] = udf
            self._udf_providers[full_id] = provider_id

        logger.info(f"Registered provider '{provider_id}' with {len(staged)} UDFs")

    def freeze(self) -> "UdfRegistry":
        """Reject any further registration. Returns self."""
        self._frozen = True
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_udf(self, full_id: str) -> Udf | None:
        return self._udfs.get(full_id)

    def get_provider(self, provider_id: str) -> UdfProvider | None:
        return self._providers.get(provider_id)

    def get_udf_provider(self, full_id: str) -> UdfProvider | None:
        provider_id = self._udf_providers.get(full_id)
        if provider_id is None:
            return None
        return self._providers.get(provider_id)

    # -------------------------------------------------------------------------
    # Listings (sorted by id)
    # -------------------------------------------------------------------------

    def list_providers(self) -> list[ProviderInfo]:
        return [
            ProviderInfo(
                id=p.id,
                name=p.name,
                version=p.version,
                description=p.description,
                udf_count=self._count_provider_udfs(pid),
            )
            for pid, p in sorted(self._providers.items())
        ]

    def list_udfs(self) -> list[UdfInfo]:
        infos = []
        for full_id in sorted(self._udfs):
            meta = self._udfs[full_id].metadata()
            infos.append(
                UdfInfo(
                    full_id=full_id,
                    provider_id=self._udf_providers[full_id],
                    name=meta.name,
                    category=meta.category,
                    description=meta.description,
                    version=meta.version,
                    tags=list(meta.tags),
                )
            )
        return infos

    def list_provider_udfs(self, provider_id: str) -> list[UdfInfo]:
        return [u for u in self.list_udfs() if u.provider_id == provider_id]

    def list_udfs_by_category(self, category: str) -> list[UdfInfo]:
        wanted = category.casefold()
        return [u for u in self.list_udfs() if u.category.casefold() == wanted]

    def search_udfs(self, query: str) -> list[UdfInfo]:
        """Case-insensitive substring search over name, description and tags."""
        q = query.lower()
        return [
            u for u in self.list_udfs()
            if q in u.name.lower()
            or q in u.description.lower()
            or any(q in tag.lower() for tag in u.tags)
        ]

    def _count_provider_udfs(self, provider_id: str) -> int:
        return sum(1 for pid in self._udf_providers.values() if pid == provider_id)

    def udf_count(self) -> int:
        return len(self._udfs)

    def provider_count(self) -> int:
        return len(self._providers)
