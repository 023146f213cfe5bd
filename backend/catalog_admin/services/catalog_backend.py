# Overview: Error types and the failure boundary around catalog database calls.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db


class CatalogBackendError(Exception):
    """The catalog database returned an error or was unreachable."""


class RecordNotFoundError(LookupError):
    """No row with the requested identity."""


@contextmanager
def backend_call(action: str):
    """
    Run database work; any SQLAlchemyError is rolled back and re-raised as
    CatalogBackendError("<action> failed").
    """
    try:
        yield
    except SQLAlchemyError as e:
        db.session.rollback()
        raise CatalogBackendError(f"{action} failed") from e
