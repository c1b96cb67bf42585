"""Mapper events that hash password columns before they reach the database."""

from sqlalchemy import event

from squadline.core.security import hash_password, looks_like_hash
from squadline.models.legacy import Athlete, Manager, Team
from squadline.models.user import User

# Credential model -> attribute holding its password (plaintext on write, hash at rest).
PASSWORD_ATTRIBUTES = {
    User: "password",
    Athlete: "password_hash",
    Manager: "password_hash",
    Team: "password_hash",
}


def hash_password_attribute(target: object, attribute: str) -> None:
    """Hash target.<attribute> once; null values and existing bcrypt hashes are left alone."""
    value = getattr(target, attribute)
    if value is None or looks_like_hash(value):
        return
    setattr(target, attribute, hash_password(value))


def _register(model: type, attribute: str) -> None:
    def before_write(mapper, connection, target) -> None:
        hash_password_attribute(target, attribute)

    event.listen(model, "before_insert", before_write)
    event.listen(model, "before_update", before_write)


for _model, _attribute in PASSWORD_ATTRIBUTES.items():
    _register(_model, _attribute)
