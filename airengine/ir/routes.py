"""Route helpers shared by the context extractor and the client/server generators."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from airengine.ast import Field, Route

CRUD_METHOD = "CRUD"

_VERBS = {"get": "get", "post": "create", "put": "update", "delete": "delete"}
_ACTION_SEGMENTS = ("login", "logout", "register", "signup", "verify", "reset", "send", "invite")
_DB_HANDLER = re.compile(r"^~db\.(\w+)\.(\w+)$")


@dataclass(frozen=True)
class DbTarget:
    """A ``~db.Model.operation`` handler target."""

    model: str
    operation: str


def crud_handler_base(handler: str) -> str:
    """``~db.Item`` and ``~db.Item.anything`` both reduce to ``~db.Item``."""
    parts = handler.split(".")
    if len(parts) >= 3:
        return ".".join(parts[:2])
    return handler


def expand_crud(routes: Iterable[Route]) -> List[Route]:
    """Replace every ``CRUD`` route with GET, POST, PUT and DELETE routes.

    Item routes append ``/:id`` to the collection path. A nested collection
    that already binds ``:id`` (``/projects/:id/tasks``) gets a named item
    parameter instead: ``/projects/:id/tasks/:taskId``.
    """
    expanded: List[Route] = []
    for route in routes:
        if route.method.upper() != CRUD_METHOD:
            expanded.append(route)
            continue
        base = crud_handler_base(route.handler)
        item_path = route.path.rstrip("/") + "/:" + item_param_name(route.path)
        expanded.extend(
            [
                Route(method="GET", path=route.path, handler=f"{base}.findMany"),
                Route(method="POST", path=route.path, handler=f"{base}.create", params=route.params),
                Route(method="PUT", path=item_path, handler=f"{base}.update", params=route.params),
                Route(method="DELETE", path=item_path, handler=f"{base}.delete"),
            ]
        )
    return expanded


def item_param_name(collection_path: str) -> str:
    """Name of the item parameter appended to ``collection_path``."""
    taken = set(extract_path_params(collection_path))
    if "id" not in taken:
        return "id"
    segments = path_segments(collection_path)
    name = singularize(camelize(segments[-1])) + "Id" if segments else "itemId"
    while name in taken:
        name = "item" + capitalize(name)
    return name


def parse_db_handler(handler: str) -> Optional[DbTarget]:
    match = _DB_HANDLER.match(handler.strip())
    if match is None:
        return None
    return DbTarget(model=match.group(1), operation=match.group(2))


def capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def camelize(text: str) -> str:
    """``order-items`` -> ``orderItems``."""
    head, *rest = re.split(r"[-_]", text)
    return head + "".join(capitalize(part) for part in rest if part)


def singularize(word: str) -> str:
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith(("ses", "xes", "zes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith(("ss", "us")):
        return word[:-1]
    return word


def pluralize(word: str) -> str:
    if word.endswith("y") and word[-2:-1] not in ("a", "e", "i", "o", "u"):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    return word + "s"


def path_segments(path: str) -> List[str]:
    """Static (non-parameter) segments of a route path."""
    return [segment for segment in path.strip("/").split("/") if segment and not segment.startswith(":")]


def extract_path_params(path: str) -> List[str]:
    return [segment[1:] for segment in path.split("/") if segment.startswith(":")]


def route_to_function_name(method: str, path: str) -> str:
    """Derive a client function name from an HTTP method and path.

    ``GET /todos`` -> ``getTodos``, ``POST /todos`` -> ``createTodo``,
    ``POST /auth/login`` -> ``authLogin``, ``GET /tasks/:id/comments`` ->
    ``getTaskComments``.
    """
    segments = [camelize(segment) for segment in path_segments(path)]
    method_lower = method.lower()
    if not segments:
        return method_lower
    verb = _VERBS.get(method_lower, method_lower)

    if len(segments) == 1:
        resource = segments[0]
        if method_lower == "get":
            return verb + capitalize(resource)
        return verb + capitalize(singularize(resource))

    if method_lower == "post" and segments[-1] in _ACTION_SEGMENTS:
        return segments[0] + "".join(capitalize(segment) for segment in segments[1:])

    joined = singularize(segments[0]) + "".join(capitalize(segment) for segment in segments[1:])
    return verb + capitalize(joined)


def route_body_fields(route: Route) -> List[Field]:
    """Declared params of a route with the ``?`` optional marker stripped."""
    fields: List[Field] = []
    for param in route.params or []:
        fields.append(Field(name=param.name.lstrip("?"), type=param.type))
    return fields


def is_auth_path(path: str) -> bool:
    lowered = path.lower()
    return (
        lowered.endswith("/login")
        or lowered.endswith("/signup")
        or lowered.endswith("/register")
        or "/auth/" in lowered
    )


__all__ = [
    "CRUD_METHOD",
    "DbTarget",
    "crud_handler_base",
    "expand_crud",
    "item_param_name",
    "parse_db_handler",
    "capitalize",
    "camelize",
    "singularize",
    "pluralize",
    "path_segments",
    "extract_path_params",
    "route_to_function_name",
    "route_body_fields",
    "is_auth_path",
]
