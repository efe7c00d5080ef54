"""Per-document-type repository configuration DTO."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RepositoryConfig:
    """Configuration for one repository instance."""

    container_name: str
    audit_enabled: bool = True
    audit_container_name: str = "audits"
    log_queries: bool = False
    log_audits: bool = False
    default_page_size: int = 500
