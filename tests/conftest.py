"""
Pytest configuration and shared fixtures for the document management tests.
"""
import pytest
from hypothesis import settings, Verbosity

from document_management.core.config import DocumentManagementConfig
from document_management.models.codes import DocumentCode
from document_management.service import DocumentManagementService
from document_management.storage.memory import (
    MemoryAttestationComponent,
    MemoryBlobStorageComponent,
    MemoryDataExtractionComponent,
    MemoryGraphComponent,
)

# Configure Hypothesis settings for all property-based tests
settings.register_profile(
    "default",
    max_examples=100,
    deadline=5000,
    suppress_health_check=[],
    verbosity=Verbosity.normal,
)

settings.register_profile(
    "ci",
    max_examples=200,
    deadline=10000,
    suppress_health_check=[],
    verbosity=Verbosity.quiet,
)

settings.register_profile(
    "debug",
    max_examples=10,
    deadline=None,
    suppress_health_check=[],
    verbosity=Verbosity.verbose,
)

settings.load_profile("default")


BILL_OF_LADING = DocumentCode.BILL_OF_LADING.value
COMMERCIAL_INVOICE = DocumentCode.COMMERCIAL_INVOICE.value


@pytest.fixture
def graph():
    """Provide a fresh in-memory graph for each test."""
    return MemoryGraphComponent()


@pytest.fixture
def blob_storage():
    """Provide a fresh in-memory blob store for each test."""
    return MemoryBlobStorageComponent()


@pytest.fixture
def attestation():
    """Provide a fresh in-memory attestation service for each test."""
    return MemoryAttestationComponent()


@pytest.fixture
def data_extraction():
    """Provide an extractor with a single bill of lading rule group."""
    return MemoryDataExtractionComponent(
        {"bill-of-lading": {"consignee": "parties.consignee", "weight": "cargo.weight"}}
    )


@pytest.fixture
def config():
    """Provide the default configuration."""
    return DocumentManagementConfig()


@pytest.fixture
def service(graph, blob_storage, attestation, data_extraction, config):
    """Provide a service wired to in-memory components."""
    return DocumentManagementService(
        graph,
        blob_storage,
        attestation,
        data_extraction=data_extraction,
        config=config,
    )
