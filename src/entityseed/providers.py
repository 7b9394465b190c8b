# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Providers describe the defaults of the persistence layer that reads the
generated data later on, for the parts of a mapping that are left implicit.
"""

from __future__ import annotations

from typing import Dict, Optional, Type

from .constants import ErrorMessages
from .dialects import import_class
from .errors import ConfigurationError
from .mapping import SequenceGenerator


class MetadataProvider:
    """
    Base provider.

    :class: MetadataProvider
    :synopsis: Implicit mapping defaults of a persistence layer
    """

    name: str = "standard"

    #: Sequence used for ``GenerationType.SEQUENCE`` without an explicit generator
    default_sequence: SequenceGenerator = SequenceGenerator("entity_sequence", 1, 1)

    def get_default_sequence(self) -> SequenceGenerator:
        return self.default_sequence

    def __repr__(self) -> str:
        return type(self).__name__


class HibernateProvider(MetadataProvider):
    """Defaults of Hibernate: one shared ``hibernate_sequence``."""

    name = "hibernate"
    default_sequence = SequenceGenerator("hibernate_sequence", 1, 1)


class EclipseLinkProvider(MetadataProvider):
    """Defaults of EclipseLink: ``SEQ_GEN_SEQUENCE`` with an allocation size of 50."""

    name = "eclipselink"
    default_sequence = SequenceGenerator("SEQ_GEN_SEQUENCE", 1, 50)


class ProviderRegistry:
    """Registry resolving provider names from the settings."""

    _providers: Dict[str, Type[MetadataProvider]] = {}

    @classmethod
    def register(cls, provider_class: Type[MetadataProvider], *aliases: str) -> None:
        for key in (provider_class.__name__, provider_class.name, *aliases):
            cls._providers[key.lower()] = provider_class

    @classmethod
    def resolve(cls, name: str) -> MetadataProvider:
        """
        Instantiate a provider by name or dotted import path.

        :raises ConfigurationError: if the name can't be resolved
        """
        key = name.strip()
        provider_class: Optional[type] = cls._providers.get(key.lower())
        if provider_class is None and "." in key:
            provider_class = import_class(key)
        if provider_class is None or not issubclass(provider_class, MetadataProvider):
            raise ConfigurationError(ErrorMessages.UNKNOWN_PROVIDER.format(name=name))
        return provider_class()


ProviderRegistry.register(MetadataProvider)
ProviderRegistry.register(HibernateProvider)
ProviderRegistry.register(EclipseLinkProvider)


__all__ = [
    "MetadataProvider",
    "HibernateProvider",
    "EclipseLinkProvider",
    "ProviderRegistry",
]
