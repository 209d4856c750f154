"""
Domain collaborators injected into the HTTP layer.

The API does not implement storage, versioning or search. Those live in
services that satisfy the protocols declared in each feature package
(`models/service.py`, `worlds/service.py`, ...). They are bundled into one
`Services` object, stored on `app.state` and reached through `get_services`.

Deployments name a factory with `API_SERVICES_FACTORY="package.module:callable"`.
The callable receives the `Settings` and returns a `Services`.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any

from fastapi import Request

from asset_collections.service import CollectionService
from auth.repository import UserStore
from categories.service import CategoryService
from licenses.service import LicenseService
from models.service import ModelService
from organizations.service import OrganizationService
from reviews.service import ReviewService
from subt.service import LogFileService, SubTService
from users.service import AccountService
from worlds.service import WorldService

from .permissions import Permissions
from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class Services:
    users: UserStore
    permissions: Permissions
    models: ModelService
    worlds: WorldService
    collections: CollectionService
    organizations: OrganizationService
    categories: CategoryService
    subt: SubTService
    logfiles: LogFileService
    accounts: AccountService
    licenses: LicenseService
    reviews: ReviewService


def _import_factory(identifier: str) -> Any:
    module_name, sep, attr_name = identifier.partition(":")
    if not sep or not module_name or not attr_name:
        raise LookupError(f"Services factory '{identifier}' must look like 'module:callable'")
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        raise LookupError(f"Services factory module '{module_name}' not found") from exc
    try:
        factory = getattr(module, attr_name)
    except AttributeError as exc:
        raise LookupError(f"'{attr_name}' not found in module '{module_name}'") from exc
    if not callable(factory):
        raise TypeError(f"Services factory '{identifier}' is not callable")
    return factory


def load_services(settings: Settings) -> Services:
    if not settings.services_factory:
        raise RuntimeError("API_SERVICES_FACTORY is not set.")
    factory = _import_factory(settings.services_factory)
    services = factory(settings)
    if not isinstance(services, Services):
        raise TypeError(
            f"Services factory '{settings.services_factory}' returned {type(services).__name__}, expected Services"
        )
    logger.info("Loaded domain services from %s", settings.services_factory)
    return services


def get_services(request: Request) -> Services:
    return request.app.state.services
