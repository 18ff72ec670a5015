"""Create and drop relational tables for the booking domain.

Only SQL providers (sqlite, postgresql) have a schema; the in-memory
provider used in development and tests is skipped.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

SQL_PROVIDERS = ("sqlite", "postgresql")


def _register_models(domain: Domain, provider_name: str) -> None:
    # Touching each repository's DAO registers its table with the provider's metadata
    records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
    for record in records:
        if record.cls.meta_.provider == provider_name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> list[str]:
    """Create tables on every SQL provider. Returns the providers touched."""
    touched = []
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] not in SQL_PROVIDERS:
                continue
            _register_models(domain, name)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))
            touched.append(name)
    return touched


def drop_db(domain: Domain) -> list[str]:
    """Drop tables on every SQL provider. Returns the providers touched."""
    touched = []
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] not in SQL_PROVIDERS:
                continue
            _register_models(domain, name)
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
            touched.append(name)
    return touched
