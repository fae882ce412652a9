"""CRUD access to ``User`` records."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.user import User
from utils.errors import Conflict, InternalFailure, NotFound

logger = logging.getLogger(__name__)


def _commit() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Database commit failed")
        raise InternalFailure()


def get_all() -> list[User]:
    return User.query.order_by(User.created_at.asc(), User.id.asc()).all()


def get_one(user_id: str) -> User | None:
    return db.session.get(User, user_id)


def get_by_email(email: str) -> User | None:
    return User.query.filter_by(email=email).first()


def get_by_verification_token(verification_token: str) -> User | None:
    return User.query.filter_by(verification_token=verification_token).first()


def get_by_token(token: str) -> User | None:
    return User.query.filter_by(token=token).first()


def create(**fields: Any) -> User:
    """Insert a new user; a duplicate email raises ``Conflict``."""

    user = User(**fields)
    db.session.add(user)
    try:
        _commit()
    except IntegrityError:
        raise Conflict()
    return user


def update(user_id: str, fields: Mapping[str, Any]) -> User:
    """Apply ``fields`` to the user and persist them."""

    user = get_one(user_id)
    if user is None:
        raise NotFound()
    for name, value in fields.items():
        setattr(user, name, value)
    try:
        _commit()
    except IntegrityError:
        logger.exception("Update of user %s violated a constraint", user_id)
        raise InternalFailure()
    return user


def remove(user_id: str) -> None:
    user = get_one(user_id)
    if user is None:
        raise NotFound()
    db.session.delete(user)
    try:
        _commit()
    except IntegrityError:
        logger.exception("Removal of user %s violated a constraint", user_id)
        raise InternalFailure()
