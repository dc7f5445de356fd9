"""Database configuration and initialization."""
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base

# Create SQLAlchemy base
Base = declarative_base()

# Global session and engine
engine = None
db_session = None


def build_engine(database_uri: str, echo: bool = False):
    """Create an engine; pool sizing only applies to server databases."""
    if database_uri.startswith('sqlite'):
        return create_engine(database_uri, echo=echo)
    return create_engine(
        database_uri,
        echo=echo,
        pool_pre_ping=True,  # Enable connection health checks
        pool_size=10,
        max_overflow=20
    )


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = build_engine(database_uri, echo=app.config.get('SQLALCHEMY_ECHO', False))

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    # Single key-value table; created on first start
    from minimart import models  # noqa: F401
    Base.metadata.create_all(engine)

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()

    return db_session


def get_session():
    """Get database session."""
    return db_session
