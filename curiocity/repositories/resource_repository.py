"""Repositories for ResourceMeta and Resource rows."""

from ..exceptions import ResourceNotFoundError
from ..schemas.resource import Resource, ResourceMeta
from ..stores.base import Table
from .base import BaseRepository


class ResourceMetaRepository(BaseRepository[ResourceMeta]):
    table = Table.RESOURCE_META
    model_class = ResourceMeta
    not_found_error = ResourceNotFoundError


class ResourceRepository(BaseRepository[Resource]):
    """Content-addressed rows; the id is the blob's MD5."""

    table = Table.RESOURCES
    model_class = Resource
    not_found_error = ResourceNotFoundError
