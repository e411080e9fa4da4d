from .metadata_service import MetadataCache, MetadataClient, IMetadataClient
from .service_container import ServiceContainer

__all__ = [
    "MetadataCache",
    "MetadataClient",
    "IMetadataClient",
    "ServiceContainer",
]
