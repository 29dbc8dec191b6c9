"""
itempush Upload Module

Publishes a content package to the creator platform through a 3-phase
workflow.

Phase 1: Prepare - log in and discover a transfer target from candidate endpoints
Phase 2: Transfer - stream the package straight to the storage target
Phase 3: Finalize - link the file to an asset, build it, and create the catalog item
"""

from .account_store import AccountStore, InMemoryAccountStore, YamlAccountStore
from .auth_client import AuthenticationClient
from .category_map import CategoryMap
from .endpoint_scanner import EndpointScanner
from .environment_detector import StudioEnvironmentDetector
from .exceptions import (
    AccountNotReady,
    AuthError,
    CategoryNotFound,
    ConfigurationError,
    DiscoveryExhausted,
    FileValidationError,
    LinkError,
    PublishError,
    SessionStateError,
    TransferError,
    UploadError,
)
from .finalize_pipeline import FinalizePipeline
from .transfer_client import DirectTransferClient
from .upload_orchestrator import UploadOrchestrator

__all__ = [
    'AccountStore',
    'InMemoryAccountStore',
    'YamlAccountStore',
    'AuthenticationClient',
    'CategoryMap',
    'EndpointScanner',
    'StudioEnvironmentDetector',
    'DirectTransferClient',
    'FinalizePipeline',
    'UploadOrchestrator',
    'UploadError',
    'AccountNotReady',
    'AuthError',
    'CategoryNotFound',
    'ConfigurationError',
    'DiscoveryExhausted',
    'FileValidationError',
    'LinkError',
    'PublishError',
    'SessionStateError',
    'TransferError',
]
