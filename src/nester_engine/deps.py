"""Dependency injection singletons for Nester-Engine."""

from nester_engine.backend.client import BackendClient
from nester_engine.brand.service import BrandService
from nester_engine.common.config import get_settings
from nester_engine.common.database import DatabaseManager
from nester_engine.identity.provider import IdentityProvider
from nester_engine.jobs.service import JobService
from nester_engine.jobs.store import JobStore
from nester_engine.jobs.workflow_client import WorkflowClient
from nester_engine.properties.service import PropertyService

_db: DatabaseManager | None = None
_identity: IdentityProvider | None = None
_workflow: WorkflowClient | None = None
_backend: BackendClient | None = None
_brands: BrandService | None = None
_properties: PropertyService | None = None
_job_store: JobStore | None = None
_jobs: JobService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_identity_provider() -> IdentityProvider:
    global _identity
    if _identity is None:
        settings = get_settings()
        _identity = IdentityProvider(settings.identity_url, settings.identity_anon_key)
    return _identity


def get_workflow_client() -> WorkflowClient:
    global _workflow
    if _workflow is None:
        settings = get_settings()
        _workflow = WorkflowClient(settings.workflow_url, settings.workflow_api_key)
    return _workflow


def get_backend_client() -> BackendClient:
    global _backend
    if _backend is None:
        _backend = BackendClient(get_settings().backend_url)
    return _backend


def get_brand_service() -> BrandService:
    global _brands
    if _brands is None:
        _brands = BrandService()
    return _brands


def get_property_service() -> PropertyService:
    global _properties
    if _properties is None:
        _properties = PropertyService()
    return _properties


def get_job_store() -> JobStore:
    global _job_store
    if _job_store is None:
        _job_store = JobStore()
    return _job_store


def get_job_service() -> JobService:
    global _jobs
    if _jobs is None:
        _jobs = JobService(
            get_settings(),
            get_workflow_client(),
            store=get_job_store(),
            properties=get_property_service(),
            brands=get_brand_service(),
        )
    return _jobs


def set_clients(
    identity: IdentityProvider | None = None,
    workflow: WorkflowClient | None = None,
    backend: BackendClient | None = None,
) -> None:
    """Install pre-built HTTP clients (used by tests to inject fake transports)."""
    global _identity, _workflow, _backend, _jobs
    if identity is not None:
        _identity = identity
    if workflow is not None:
        _workflow = workflow
        _jobs = None
    if backend is not None:
        _backend = backend


async def close_clients() -> None:
    for client in (_identity, _workflow, _backend):
        if client is not None:
            await client.aclose()


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _identity, _workflow, _backend, _brands, _properties, _job_store, _jobs
    _db = None
    _identity = None
    _workflow = None
    _backend = None
    _brands = None
    _properties = None
    _job_store = None
    _jobs = None
