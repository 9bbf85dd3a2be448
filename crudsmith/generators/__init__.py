# File: crudsmith/generators/__init__.py
"""
crudsmith - Artifact Generators
================================
One generator class per artifact kind, all sharing the
``ArtifactGenerator`` contract.

``generator_for(kind, config)`` resolves the class to use; it is the only
place where the configuration picks between strategies (the service
variant).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Type

from crudsmith.generators.base import ArtifactGenerator, artifact_class, artifact_module
from crudsmith.generators.controller import ControllerGenerator
from crudsmith.generators.factory import FactoryGenerator
from crudsmith.generators.migration import MigrationGenerator
from crudsmith.generators.model import ModelGenerator
from crudsmith.generators.policy import PolicyGenerator
from crudsmith.generators.repository import DataAccessRenderer, RepositoryGenerator
from crudsmith.generators.requests import CreateRequestGenerator, UpdateRequestGenerator
from crudsmith.generators.routes import RoutesGenerator
from crudsmith.generators.seeder import SeederGenerator
from crudsmith.generators.service import (
    InlineServiceGenerator,
    RepositoryServiceGenerator,
    service_generator_for,
)
from crudsmith.generators.transformer import TransformerGenerator
from crudsmith.models import ArtifactKind, GenerationConfig

logger: logging.Logger = logging.getLogger("crudsmith.generators")

# Fixed generator per kind; SERVICE is resolved from the config.
GENERATOR_REGISTRY: Dict[str, Type[ArtifactGenerator]] = {
    ArtifactKind.MODEL.value: ModelGenerator,
    ArtifactKind.MIGRATION.value: MigrationGenerator,
    ArtifactKind.CONTROLLER.value: ControllerGenerator,
    ArtifactKind.REPOSITORY.value: RepositoryGenerator,
    ArtifactKind.CREATE_REQUEST.value: CreateRequestGenerator,
    ArtifactKind.UPDATE_REQUEST.value: UpdateRequestGenerator,
    ArtifactKind.TRANSFORMER.value: TransformerGenerator,
    ArtifactKind.POLICY.value: PolicyGenerator,
    ArtifactKind.FACTORY.value: FactoryGenerator,
    ArtifactKind.SEEDER.value: SeederGenerator,
    ArtifactKind.ROUTES.value: RoutesGenerator,
}


def generator_for(kind: ArtifactKind, config: GenerationConfig) -> Type[ArtifactGenerator]:
    """Generator class producing *kind* under *config*."""
    if kind == ArtifactKind.SERVICE:
        return service_generator_for(config)
    return GENERATOR_REGISTRY[kind.value]


__all__: List[str] = [
    "ArtifactGenerator",
    "artifact_class",
    "artifact_module",
    "ControllerGenerator",
    "CreateRequestGenerator",
    "DataAccessRenderer",
    "FactoryGenerator",
    "GENERATOR_REGISTRY",
    "InlineServiceGenerator",
    "MigrationGenerator",
    "ModelGenerator",
    "PolicyGenerator",
    "RepositoryGenerator",
    "RepositoryServiceGenerator",
    "RoutesGenerator",
    "SeederGenerator",
    "TransformerGenerator",
    "UpdateRequestGenerator",
    "generator_for",
    "service_generator_for",
]

logger.debug("crudsmith.generators loaded (%d public symbols).", len(__all__))
