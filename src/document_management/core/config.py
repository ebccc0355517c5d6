"""Configuration for the document management service."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUE_VALUES = ("1", "true", "yes", "on")


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class DocumentManagementConfig:
    """Settings for DocumentManagementService.

    Attributes:
        namespace: Namespace the service is published under.
        query_page_size: Number of document groups per query page.
        most_recent_revision_count: History cap used by query when the
            most recent revisions are requested.
        inherit_attestation: Attest a new revision when the caller leaves
            the attestation flag unset and an earlier revision was attested.
        log_level: Log level passed to configure_logging.
        json_logs: Emit JSON log lines.
    """

    namespace: str = "documents"
    query_page_size: int = 20
    most_recent_revision_count: int = 5
    inherit_attestation: bool = False
    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "DocumentManagementConfig":
        """Build a config from environment variables.

        Args:
            environ: Mapping to read instead of os.environ.

        Returns:
            Populated configuration.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        return cls(
            namespace=env.get("DOCUMENT_MANAGEMENT_NAMESPACE", defaults.namespace),
            query_page_size=int(
                env.get("DOCUMENT_QUERY_PAGE_SIZE", defaults.query_page_size)
            ),
            most_recent_revision_count=int(
                env.get(
                    "DOCUMENT_MOST_RECENT_REVISIONS",
                    defaults.most_recent_revision_count,
                )
            ),
            inherit_attestation=_as_bool(
                env.get("DOCUMENT_INHERIT_ATTESTATION"), defaults.inherit_attestation
            ),
            log_level=env.get("LOG_LEVEL", defaults.log_level),
            json_logs=_as_bool(env.get("LOG_JSON"), defaults.json_logs),
        )
