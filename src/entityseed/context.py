# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
The generator context: configuration of a generation session plus the caches
and the state that live as long as the session.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

from .constants import ErrorMessages, LoggingMessages, UniquePropertyQuality
from .dialects import DialectRegistry, GeneratorDialect
from .entity_class import EntityClass
from .errors import InconsistentStateError
from .mapping import is_entity_class
from .providers import MetadataProvider, ProviderRegistry
from .settings import GeneratorSettings
from .state import GeneratorStateStore

logger = logging.getLogger(__name__)


class GeneratorContext:
    """
    Configuration and state of one generation session.

    :class: GeneratorContext
    :synopsis: Settings, dialect, provider, entity descriptions and generator state

    The context is not thread-safe. Hosts that generate from several threads
    serialize the calls or use one context per thread.

    Example::

        context = GeneratorContext({"entityseed.generator.dialect": "postgres"})
        context.get_description(Person).table  # "Person"
    """

    def __init__(self, settings: Union[GeneratorSettings, Mapping[str, Any], None] = None) -> None:
        """
        Create a context from a settings map.

        :param settings: Flat settings map or already validated settings
        :raises ConfigurationError: if the dialect, the provider or a value is invalid
        """
        if not isinstance(settings, GeneratorSettings):
            settings = GeneratorSettings.from_mapping(settings)
        self.settings = settings
        self.dialect: GeneratorDialect = DialectRegistry.resolve(settings.dialect)
        self.provider: MetadataProvider = ProviderRegistry.resolve(settings.provider)
        self.state = GeneratorStateStore()
        self._descriptions: Dict[type, EntityClass] = {}
        logger.info(LoggingMessages.CONTEXT_CREATED, self.dialect, self.provider)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    @property
    def explicit_ids(self) -> bool:
        """Identifiers are written as values instead of being generated by the database."""
        return self.settings.explicit_ids

    @property
    def write_null_values(self) -> bool:
        return self.settings.write_null_values

    @property
    def unique_property_quality(self) -> UniquePropertyQuality:
        return self.settings.unique_property_quality

    @property
    def max_unique_properties(self) -> int:
        return self.settings.max_unique_properties

    @property
    def prefer_sequence_current_value(self) -> bool:
        return self.settings.prefer_sequence_current_value

    # -------------------------------------------------------------------------
    # Entity descriptions
    # -------------------------------------------------------------------------

    def get_description(self, entity_or_class: Any) -> EntityClass:
        """
        Find the description of an entity or entity class.

        Classes without their own ``@entity`` use the description of their
        nearest mapped ancestor.

        :param entity_or_class: Entity instance or class
        :returns: The description
        :raises InconsistentStateError: for ``None`` and for classes that are not mapped
        :raises MappingError: if the class can't be described
        """
        if entity_or_class is None:
            raise InconsistentStateError(ErrorMessages.NULL_ENTITY)
        entity_class = entity_or_class if isinstance(entity_or_class, type) else type(entity_or_class)

        description = self._descriptions.get(entity_class)
        if description is not None:
            return description

        # @@ STEP 1: Own mapping, cached before the properties reference other classes
        if is_entity_class(entity_class):
            description = EntityClass(self, entity_class)
            self._descriptions[entity_class] = description
            try:
                description.build()
            except Exception:
                del self._descriptions[entity_class]
                raise
            return description

        # @@ STEP 2: Inherited mapping
        for base in entity_class.__mro__[1:]:
            if is_entity_class(base):
                description = self.get_description(base)
                logger.debug(LoggingMessages.DESCRIPTION_ALIASED, base.__name__, entity_class.__name__)
                self._descriptions[entity_class] = description
                return description

        raise InconsistentStateError(ErrorMessages.NOT_AN_ENTITY_CLASS.format(class_name=entity_class.__name__))

    @property
    def descriptions(self) -> Mapping[type, EntityClass]:
        return MappingProxyType(self._descriptions)


__all__ = [
    "GeneratorContext",
]
