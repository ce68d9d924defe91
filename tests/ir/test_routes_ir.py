import pytest

from airengine.ast import Field, Route, ScalarType
from airengine.ir.routes import (
    DbTarget,
    camelize,
    expand_crud,
    extract_path_params,
    is_auth_path,
    item_param_name,
    parse_db_handler,
    pluralize,
    route_body_fields,
    route_to_function_name,
    singularize,
)


def test_crud_expands_to_four_routes():
    routes = expand_crud([Route(method="CRUD", path="/items", handler="~db.Item")])
    assert [(r.method, r.path, r.handler) for r in routes] == [
        ("GET", "/items", "~db.Item.findMany"),
        ("POST", "/items", "~db.Item.create"),
        ("PUT", "/items/:id", "~db.Item.update"),
        ("DELETE", "/items/:id", "~db.Item.delete"),
    ]


def test_crud_expansion_keeps_other_routes_in_place():
    routes = expand_crud(
        [
            Route(method="GET", path="/stats", handler="~db.Item.aggregate"),
            Route(method="crud", path="/users/:id/posts/", handler="~db.Post.findMany"),
        ]
    )
    assert routes[0].path == "/stats"
    assert routes[1].handler == "~db.Post.findMany"
    assert routes[3].path == "/users/:id/posts/:postId"
    assert routes[4].path == "/users/:id/posts/:postId"
    assert len(routes) == 5


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/items", "id"),
        ("/users/:userId/posts", "id"),
        ("/projects/:id/tasks", "taskId"),
        ("/orders/:id/order-items", "orderItemId"),
        ("/a/:id/tasks/:taskId/notes", "noteId"),
        ("/notes/:id/links/:taskId/tasks", "itemTaskId"),
    ],
)
def test_item_param_name(path, expected):
    assert item_param_name(path) == expected


def test_nested_crud_item_params_are_distinct():
    routes = expand_crud([Route(method="CRUD", path="/projects/:id/tasks", handler="~db.Task")])
    for route in routes[2:]:
        params = extract_path_params(route.path)
        assert params == ["id", "taskId"]
        assert len(set(params)) == len(params)


def test_crud_params_flow_to_write_routes():
    params = [Field(name="name", type=ScalarType(name="str"))]
    routes = expand_crud([Route(method="CRUD", path="/items", handler="~db.Item", params=params)])
    assert routes[0].params is None
    assert routes[1].params == params
    assert routes[2].params == params


@pytest.mark.parametrize(
    "method, path, expected",
    [
        ("GET", "/items", "getItems"),
        ("POST", "/items", "createItem"),
        ("PUT", "/items/:id", "updateItem"),
        ("DELETE", "/items/:id", "deleteItem"),
        ("POST", "/auth/login", "authLogin"),
        ("POST", "/auth/register", "authRegister"),
        ("GET", "/projects/:id/tasks", "getProjectTasks"),
        ("GET", "/order-items", "getOrderItems"),
        ("GET", "/", "get"),
    ],
)
def test_route_to_function_name(method, path, expected):
    assert route_to_function_name(method, path) == expected


@pytest.mark.parametrize(
    "word, expected",
    [("items", "item"), ("categories", "category"), ("boxes", "box"), ("status", "status"), ("class", "class")],
)
def test_singularize(word, expected):
    assert singularize(word) == expected


@pytest.mark.parametrize(
    "word, expected",
    [("item", "items"), ("category", "categories"), ("day", "days"), ("box", "boxes")],
)
def test_pluralize(word, expected):
    assert pluralize(word) == expected


def test_parse_db_handler():
    assert parse_db_handler("~db.Item.findMany") == DbTarget(model="Item", operation="findMany")
    assert parse_db_handler(" ~db.Project.aggregate ") == DbTarget(model="Project", operation="aggregate")
    assert parse_db_handler("~custom.export") is None
    assert parse_db_handler("auth.login") is None


def test_path_helpers():
    assert camelize("order-items") == "orderItems"
    assert extract_path_params("/projects/:projectId/tasks/:id") == ["projectId", "id"]
    assert is_auth_path("/auth/login")
    assert is_auth_path("/users/signup")
    assert not is_auth_path("/authors")


def test_route_body_fields_strip_optional_marker():
    route = Route(
        method="POST",
        path="/auth/login",
        handler="auth.login",
        params=[Field(name="email", type=ScalarType(name="str")), Field(name="?remember", type=ScalarType(name="bool"))],
    )
    assert [field.name for field in route_body_fields(route)] == ["email", "remember"]
