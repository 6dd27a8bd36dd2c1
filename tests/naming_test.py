from __future__ import annotations

from pytest_subtests import SubTests

from lookalike.naming import blueprint_name_for, camelize, underscore


class BlogPost:
    pass


class HTTPRequest:
    pass


def test_underscore(subtests: SubTests) -> None:
    for word, expected in [
        ("User", "user"),
        ("BlogPost", "blog_post"),
        ("HTTPRequest", "http_request"),
        ("Address2Line", "address2_line"),
    ]:
        with subtests.test(word):
            assert underscore(word) == expected


def test_camelize() -> None:
    assert camelize("user") == "User"
    assert camelize("blog_post") == "BlogPost"


def test_blueprint_name_for() -> None:
    assert blueprint_name_for("admin") == "admin"
    assert blueprint_name_for(BlogPost) == "blog_post"
    assert blueprint_name_for(HTTPRequest) == "http_request"
