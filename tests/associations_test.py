from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_subtests import SubTests

from lookalike import AttributeResolutionContext, BlueprintNotFound, InvalidOptions, Registry, Strategy


@dataclass
class User:
    name: str = ""
    saved: bool = field(default=False, compare=False)

    def save(self) -> None:
        self.saved = True


@dataclass
class Post:
    title: str = ""
    author: User | None = None
    saved: bool = field(default=False, compare=False)

    def save(self) -> None:
        self.saved = True


@dataclass
class Comment:
    body: str = ""
    post: Post | None = None
    commenter: User | None = None
    saved: bool = field(default=False, compare=False)

    def save(self) -> None:
        self.saved = True


@pytest.fixture(name="reg")
def registry_fixture() -> Registry:
    reg = Registry()

    with reg.blueprint(User) as factory:
        factory.set("name", "Billy Idol")

    with reg.blueprint(Post) as factory:
        factory.set("title", "Rebel Yell")
        factory.add_association("author", blueprint="user")

    return reg


def test_create_persists_associations(reg: Registry) -> None:
    post = reg.create("post")
    assert post.saved
    assert isinstance(post.author, User)
    assert post.author.saved
    assert post.author.name == "Billy Idol"


def test_build_persists_nothing(reg: Registry) -> None:
    post = reg.build("post")
    assert not post.saved
    assert isinstance(post.author, User)
    assert not post.author.saved


def test_attributes_for_builds_no_association(reg: Registry) -> None:
    assert reg.attributes_for("post") == {"title": "Rebel Yell", "author": None}


def test_overridden_association_is_not_built(reg: Registry, subtests: SubTests) -> None:
    BUILT = []

    with reg.blueprint("tracked_user", target=User) as factory:
        factory.add_attribute("name", lazy=lambda context: BUILT.append(context.strategy) or "Tracked")

    with reg.blueprint("tracked_post", target=Post) as factory:
        factory.add_association("author", blueprint="tracked_user")

    with subtests.test("attributes_for"):
        assert reg.attributes_for("tracked_post", {"author": 42}) == {"author": 42}

    with subtests.test("create"):
        author = User("Given")
        post = reg.create("tracked_post", {"author": author})
        assert post.author is author
        assert not author.saved

    assert BUILT == []

    with subtests.test("not overridden"):
        reg.create("tracked_post")
        assert BUILT == [Strategy.CREATE]


def test_foreign_key_alias(reg: Registry, subtests: SubTests) -> None:
    with subtests.test("author_id stands for author"):
        assert reg.attributes_for("post", {"author_id": 42}) == {"author_id": 42, "title": "Rebel Yell"}

    with subtests.test("no user is built"):
        post = reg.build("post", {"author_id": 42})
        assert post.author is None
        assert getattr(post, "author_id") == 42


def test_association_defaults_to_attribute_name() -> None:
    reg = Registry()

    with reg.blueprint(User) as factory:
        factory.set("name", "Billy Idol")

    with reg.blueprint("post", target=Post) as factory:
        factory.add_association("user")

    assert reg.build("post").user == User("Billy Idol")


def test_association_with_class_name(reg: Registry) -> None:
    with reg.blueprint(Comment) as factory:
        factory.add_association("commenter", blueprint=User)

    assert reg.build("comment").commenter == User("Billy Idol")


def test_association_overrides(reg: Registry) -> None:
    with reg.blueprint(Comment) as factory:
        factory.set("body", "Great article!")
        factory.add_association("post", overrides={"title": "White Wedding"})
        factory.add_association("commenter", blueprint="user", overrides={"name": "Steve Stevens"})

    comment = reg.create("comment")
    assert comment.saved
    assert comment.post.title == "White Wedding"
    assert comment.post.saved
    assert comment.post.author == User("Billy Idol")
    assert comment.post.author.saved
    assert comment.commenter == User("Steve Stevens")


def test_association_option_validation(reg: Registry) -> None:
    with pytest.raises(InvalidOptions) as excinfo:
        with reg.blueprint(Comment) as factory:
            factory.add_association("post", factory="post")
    assert excinfo.value.options == {"factory"}
    assert "comment" not in reg


def test_unknown_association(reg: Registry, subtests: SubTests) -> None:
    with reg.blueprint(Comment) as factory:
        factory.add_association("post", blueprint="article")

    with subtests.test("build"):
        with pytest.raises(BlueprintNotFound) as excinfo:
            reg.build("comment")
        assert excinfo.value.name == "article"

    with subtests.test("attributes_for"):
        with pytest.raises(BlueprintNotFound) as excinfo:
            reg.attributes_for("comment")
        assert excinfo.value.name == "article"

    with subtests.test("overridden"):
        assert reg.attributes_for("comment", {"post": None}) == {"post": None}


def test_context_builds_associations(reg: Registry) -> None:
    def author(context: AttributeResolutionContext) -> Any:
        return context.build_association("user", {"name": context["title"].upper()})

    with reg.blueprint("shouting_post", target=Post) as factory:
        factory.set("title", "Mony Mony")
        factory.add_attribute("author", lazy=author)

    post = reg.create("shouting_post")
    assert post.author == User("MONY MONY")
    assert post.author.saved
    assert reg.attributes_for("shouting_post") == {"title": "Mony Mony", "author": None}


def test_association_failure_leaves_nothing(reg: Registry) -> None:
    PERSISTED = []

    def refuse(instance: Any, attributes: Any) -> None:
        raise RuntimeError("storage down")

    with reg.blueprint("refused_user", target=User, storage=refuse) as factory:
        factory.set("name", "Nobody")

    with reg.blueprint("refused_post", target=Post, storage=lambda instance, attributes: PERSISTED.append(instance)) as factory:
        factory.add_association("author", blueprint="refused_user")

    with pytest.raises(RuntimeError, match="storage down"):
        reg.create("refused_post")
    assert PERSISTED == []
