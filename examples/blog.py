from __future__ import annotations

from dataclasses import dataclass, field

from lookalike import Computed, Registry, Sequence


@dataclass
class User:
    name: str = ""
    email: str = ""
    saved: bool = field(default=False, repr=False)

    def save(self) -> None:
        self.saved = True


@dataclass
class Post:
    title: str = ""
    author: User | None = None
    saved: bool = field(default=False, repr=False)

    def save(self) -> None:
        self.saved = True


registry = Registry()

with registry.blueprint(User) as user_factory:
    user_factory.set("name", "Billy Idol")
    user_factory.set("email", Computed(lambda name: f"{name}@example.com".replace(" ", ".").lower()))

with registry.blueprint(Post) as post_factory:
    post_factory.set("title", Sequence(lambda i: f"Rebel Yell, take {i}"))
    post_factory.add_association("author", blueprint=User)

registry.freeze()

print(registry.attributes_for(Post))
print(registry.build(Post))

post = registry.create(Post)
print(post, post.saved, post.author.saved)

print(registry.attributes_for(Post, {"author_id": 42}))
