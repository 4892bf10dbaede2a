"""Datastore backends.

Records and factories only talk to the Datastore protocol. SqlDatastore
is the SQLAlchemy-backed implementation.
"""

from ci_models.datastore.base import Datastore
from ci_models.datastore.sql import SqlDatastore

__all__ = ["Datastore", "SqlDatastore"]
