import uuid
from typing import Any

from lookalike import Attributes, ValidationError, create, define

REPO: Any = {"user_by_ids": {}}


class User:
    id: uuid.UUID | None = None
    name: str = ""


def persist(instance: User, attributes: Attributes) -> None:
    if not instance.name:
        raise ValidationError(instance, {"name": ["can't be blank"]})
    instance_id = instance.id = instance.id or uuid.uuid4()
    REPO["user_by_ids"][instance_id] = instance


define(User, lambda factory: factory.set("name", "John"), storage=persist)


users = [
    create(User, overrides={"name": "John"}),
    create(User, overrides={"name": "Paul"}),
    create(User, overrides={"name": "Ringo"}),
]
print(REPO)

try:
    create(User, overrides={"name": ""})
except ValidationError as error:
    print(error)
