"""Build the async database URL from individual settings"""
from sqlalchemy.engine import URL


def get_database_url(
    driver: str,
    host: str | None,
    port: int,
    user: str | None,
    password: str | None,
    name: str | None,
) -> str:
    """
    Assemble a SQLAlchemy URL string from its parts.

    Credentials are escaped by ``URL.create``, so passwords may contain
    ``@``, ``/`` or ``:``.

    Raises:
        ValueError: If host, user or database name is missing

    Example:
        >>> get_database_url("postgresql+asyncpg", "db", 5432, "tracker", "p@ss", "maintenance")
        'postgresql+asyncpg://tracker:p%40ss@db:5432/maintenance'
    """
    missing = [label for label, value in (("DB_HOST", host), ("DB_USER", user), ("DB_NAME", name)) if not value]
    if missing:
        raise ValueError(f"Database settings missing: {', '.join(missing)}")

    url = URL.create(
        drivername=driver,
        username=user,
        password=password,
        host=host,
        port=port,
        database=name,
    )
    return url.render_as_string(hide_password=False)
