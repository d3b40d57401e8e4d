# (c) Copyright Datacraft, 2026
from sqlalchemy import create_engine, Engine
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy.orm import sessionmaker, Session as SQLAlchemySession


def get_engine(db_url: str) -> Engine:
    if db_url.startswith("sqlite") and ":memory:" in db_url:
        # single shared connection, otherwise every session sees an empty database
        return create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(db_url, poolclass=NullPool)


def get_session_factory(engine: Engine) -> sessionmaker[SQLAlchemySession]:
    return sessionmaker(engine, expire_on_commit=False)
