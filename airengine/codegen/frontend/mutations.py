"""``!action`` mutations: wire each to an API route or fall back to local state."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Sequence

from airengine.ast import ArrayType, ElementNode, ObjectType, Route, UINode, UnaryNode, unwrap_optional
from airengine.ir.routes import capitalize, parse_db_handler, route_to_function_name
from airengine.ir.ui_analysis import MutationInfo

from .helpers import safe_action_name, setter

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

logger = logging.getLogger(__name__)

_CREATE = re.compile(r"~db\.\w+\.create")
_UPDATE = re.compile(r"~db\.\w+\.update")
_DELETE = re.compile(r"~db\.\w+\.delete")
_UPDATE_SUFFIX = re.compile(r"\.update$")
_VERB_MODEL = re.compile(
    r"^(create|add|update|resolve|assign|close|reopen|complete|approve|reject|cancel|confirm|publish|unpublish"
    r"|activate|deactivate|archive|restore|block|unblock|mark|flag|enroll|book|move|pin|unpin|star|unstar"
    r"|remove|delete)([A-Z]\w*)$"
)
ACTION_VERBS = frozenset(
    {
        "approve", "reject", "cancel", "confirm", "publish", "unpublish", "activate", "deactivate",
        "complete", "close", "reopen", "assign", "unassign", "move", "pin", "unpin", "star", "unstar",
        "archive", "restore", "block", "unblock", "mark", "flag", "enroll", "book",
    }
)
POST_LOGIN_PREFERENCE = ("dashboard", "home", "overview", "main")
AUTH_ONLY_PAGES = frozenset({"login", "signup", "register", "auth"})


@dataclass(frozen=True)
class RouteMatch:
    fn_name: str
    method: str
    refetch_fn: Optional[str] = None
    refetch_setter: Optional[str] = None
    handler: str = ""


def model_hint(arg_nodes: Sequence[UINode]) -> Optional[str]:
    """``!del(#task.id)`` hints at the ``tasks`` collection."""
    if not arg_nodes:
        return None
    arg = arg_nodes[0]
    if isinstance(arg, UnaryNode) and arg.operator == "#":
        arg = arg.operand
    if isinstance(arg, ElementNode) and "." in arg.element:
        name = arg.element.split(".")[0]
        return name if name.endswith("s") else name + "s"
    return None


def _first(routes: Iterable[Route], predicate: Callable[[Route], bool]) -> Optional[Route]:
    return next((route for route in routes if predicate(route)), None)


def _put_update(path_hint: Optional[str] = None) -> Callable[[Route], bool]:
    def predicate(route: Route) -> bool:
        if route.method != "PUT" or not _UPDATE_SUFFIX.search(route.handler):
            return False
        return path_hint is None or path_hint in route.path

    return predicate


def _refetch_setter(resource: str, ctx: "TranspileContext") -> Optional[str]:
    if ctx.state_field(resource) is not None:
        return setter(resource)
    arrays = ctx.array_state_fields()
    if len(arrays) == 1:
        return setter(arrays[0].name)
    return None


def _base_path(path: str) -> str:
    return re.sub(r"/:[^/]+$", "", path)


def _collection_get(path: str, routes: Sequence[Route]) -> Optional[Route]:
    base = _base_path(path)
    return _first(routes, lambda route: route.method == "GET" and route.path == base)


def find_matching_route(
    name: str,
    routes: Sequence[Route],
    ctx: "TranspileContext",
    arg_nodes: Sequence[UINode] = (),
) -> Optional[RouteMatch]:
    """Match a conventional mutation name to an expanded route plus its refetch."""
    route: Optional[Route] = None
    if name in ("add", "addItem"):
        route = _first(routes, lambda r: r.method == "POST" and bool(_CREATE.search(r.handler)))
    elif name in ("del", "delItem", "remove"):
        deletes = [r for r in routes if r.method == "DELETE" and _DELETE.search(r.handler)]
        hint = model_hint(arg_nodes)
        if hint:
            route = _first(deletes, lambda r: f"/{hint}" in r.path)
            if route is None:
                if len(deletes) != 1:
                    return None
                route = deletes[0]
        elif deletes:
            route = deletes[0]
    elif name == "toggle":
        route = _first(routes, lambda r: r.method == "PUT" and bool(_UPDATE.search(r.handler)))
    elif name == "updateProfile":
        route = _first(routes, _put_update("/user")) or _first(routes, _put_update())
    elif name in ("update", "save"):
        route = _first(routes, _put_update())
    elif name == "archive":
        route = _first(routes, _put_update("/project")) or _first(routes, _put_update())
    elif name == "done":
        route = _first(routes, _put_update("/task")) or _first(routes, _put_update())
    elif name == "login":
        route = _first(routes, lambda r: r.method == "POST" and r.path.endswith("/login"))
    elif name in ("signup", "register"):
        route = _first(routes, lambda r: r.method == "POST" and r.path.endswith(("/signup", "/register")))
    elif name == "logout":
        route = _first(routes, lambda r: r.method == "POST" and r.path.endswith("/logout"))
    elif name in ("forgotPassword", "resetPassword"):
        route = _first(
            routes, lambda r: r.method == "POST" and r.path.endswith(("/forgot-password", "/reset-password"))
        )

    if route is None:
        return None

    refetch_fn = refetch_setter = None
    get_route = _collection_get(route.path, routes)
    if get_route is not None:
        refetch_fn = route_to_function_name("GET", get_route.path)
        resource = _base_path(route.path).strip("/").split("/")[-1]
        refetch_setter = _refetch_setter(resource, ctx)
    return RouteMatch(
        fn_name=route_to_function_name(route.method, route.path),
        method=route.method,
        refetch_fn=refetch_fn,
        refetch_setter=refetch_setter,
        handler=route.handler,
    )


def find_generic_route_match(name: str, routes: Sequence[Route]) -> Optional[RouteMatch]:
    """Match any other action name: kebab path, then verb+Model, then action verbs."""
    kebab = re.sub(r"([a-z])([A-Z])", r"\1-\2", name).lower()
    for method in ("POST", "PUT"):
        route = _first(routes, lambda r: r.method == method and r.path.endswith(f"/{kebab}"))
        if route is not None:
            return RouteMatch(route_to_function_name(route.method, route.path), method, handler=route.handler)

    match = _VERB_MODEL.match(name)
    if match:
        verb, model = match.groups()
        plural = model.lower() if model.lower().endswith("s") else model.lower() + "s"
        method = {"create": "POST", "add": "POST", "delete": "DELETE", "remove": "DELETE"}.get(verb, "PUT")
        pattern = {"POST": _CREATE, "DELETE": _DELETE, "PUT": _UPDATE}[method]
        route = _first(
            routes, lambda r: r.method == method and f"/{plural}" in r.path and bool(pattern.search(r.handler))
        )
        if route is not None:
            return RouteMatch(route_to_function_name(route.method, route.path), method, handler=route.handler)

    if name.lower() in ACTION_VERBS:
        route = _first(routes, lambda r: r.method == "PUT" and bool(_UPDATE.search(r.handler)))
        if route is not None:
            return RouteMatch(route_to_function_name(route.method, route.path), "PUT", handler=route.handler)
    return None


def post_login_page(pages: Sequence[str]) -> str:
    if not pages:
        return "home"
    for name in POST_LOGIN_PREFERENCE:
        if name in pages:
            return name
    return next((page for page in pages if page not in AUTH_ONLY_PAGES), pages[0])


@dataclass
class _Env:
    ctx: "TranspileContext"
    routes: List[Route]
    array_name: Optional[str]
    has_loading: bool
    has_error: bool
    has_auth: bool
    has_pages: bool
    post_login: str

    @property
    def can_wire(self) -> bool:
        return bool(self.routes)

    def error_setter(self) -> Optional[str]:
        if self.has_auth:
            return "setAuthError"
        if self.has_error:
            return "setError"
        return None

    def navigate(self, page: str) -> List[str]:
        return [f"  setCurrentPage('{page}');"] if self.has_pages else []


def _refetch(match: RouteMatch, indent: str = "    ") -> List[str]:
    if not (match.refetch_fn and match.refetch_setter):
        return []
    return [
        f"{indent}const updated = await api.{match.refetch_fn}();",
        f"{indent}{match.refetch_setter}(updated.data ?? updated);",
    ]


def _wired(name: str, params: str, call: str, match: RouteMatch, extra: Sequence[str] = ()) -> List[str]:
    return [
        f"const {name} = async ({params}) => {{",
        "  try {",
        *extra,
        f"    await api.{call};",
        *_refetch(match),
        "  } catch (err) {",
        f"    console.error('{name} failed:', err);",
        "  }",
        "};",
    ]


def _log_stub(name: str, safe_name: Optional[str] = None) -> List[str]:
    return [f"const {safe_name or name} = (...args) => {{", f"  console.log('{name}', ...args);", "};"]


def _form_auth(name: str, env: _Env, body: Sequence[str], required: str, missing_msg: str, fail_msg: str) -> List[str]:
    err = env.error_setter()
    lines = [f"const {name} = async (e) => {{", "  e?.preventDefault?.();"]
    if env.has_loading:
        lines.append("  setLoading(true);")
    if err:
        lines.append(f"  {err}(null);")
    lines.extend(
        [
            "  try {",
            "    const formData = e?.target ? Object.fromEntries(new FormData(e.target)) : {};",
            f"    if ({required}) {{",
        ]
    )
    if err:
        lines.append(f"      {err}('{missing_msg}');")
    lines.extend(["      return;", "    }"])
    lines.extend(body)
    lines.append("  } catch (err) {")
    if err:
        if name == "login" and env.has_auth and env.can_wire:
            lines.append(
                "    const msg = err.message?.includes('401') ? 'Invalid email or password' : (err.message || 'Login failed');"
            )
            lines.append(f"    {err}(msg);")
        else:
            lines.append(f"    {err}(err.message || '{fail_msg}');")
    lines.append(f"    console.error('{fail_msg}:', err);")
    if env.has_loading:
        lines.extend(["  } finally {", "    setLoading(false);"])
    lines.extend(["  }", "};"])
    return lines


def _gen_add(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    name = mutation.name
    if match:
        return _wired(name, "data", f"{match.fn_name}(data)", match)
    if env.array_name:
        return [
            f"const {name} = (data) => {{",
            f"  {setter(env.array_name)}(prev => [...prev, {{ ...data, id: Date.now() }}]);",
            "};",
        ]
    return _log_stub(name)


def _gen_delete(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    name = mutation.name
    ctx = env.ctx
    deletes = [r for r in env.routes if r.method == "DELETE" and _DELETE.search(r.handler)]
    if len(deletes) > 1:
        lines = [f"const {name} = async (id) => {{", "  try {"]
        first = True
        for route in deletes:
            target = parse_db_handler(route.handler)
            if target is None:
                continue
            plural = target.model[:1].lower() + target.model[1:] + "s"
            field = ctx.state_field(plural)
            if field is None or not isinstance(unwrap_optional(field.type), ArrayType):
                continue
            keyword = "if" if first else "} else if"
            lines.append(f"    {keyword} ({plural}.find(i => i.id === id)) {{")
            lines.append(f"      await api.{route_to_function_name(route.method, route.path)}(id);")
            get_route = _collection_get(route.path, env.routes)
            if get_route is not None:
                var = f"_updated{capitalize(plural)}"
                lines.append(f"      const {var} = await api.{route_to_function_name('GET', get_route.path)}();")
                lines.append(f"      {setter(plural)}({var}.data ?? {var});")
            first = False
        if not first:
            lines.append("    }")
        lines.extend(["  } catch (err) {", f"    console.error('{name} failed:', err);", "  }", "};"])
        return lines
    if match:
        return _wired(name, "id", f"{match.fn_name}(id)", match)

    hint = model_hint(mutation.arg_nodes)
    target = env.array_name
    if hint:
        field = ctx.state_field(hint)
        if field is not None and isinstance(unwrap_optional(field.type), ArrayType):
            target = field.name
    if target:
        return [f"const {name} = (id) => {{", f"  {setter(target)}(prev => prev.filter(item => item.id !== id));", "};"]
    return _log_stub(name)


def _gen_toggle(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    name = mutation.name
    if match:
        if env.array_name:
            extra = [f"    const current = {env.array_name}.find(i => i.id === id);"]
            call = f"{match.fn_name}(id, {{ [field]: !(current?.[field]) }})"
        else:
            extra = []
            call = f"{match.fn_name}(id, {{ [field]: true }})"
        return _wired(name, "id, field", call, match, extra)
    if env.array_name:
        return [
            f"const {name} = (id, field) => {{",
            f"  {setter(env.array_name)}(prev => prev.map(item => item.id === id ? {{ ...item, [field]: !item[field] }} : item));",
            "};",
        ]
    return _log_stub(name)


def _gen_login(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    app = env.ctx.app_name
    if match:
        body = [f"    const result = await api.{match.fn_name}(formData);"]
        if env.has_auth:
            body.extend(
                [
                    "    if (result.token) api.setToken(result.token);",
                    "    const u = result.user || result;",
                    "    setUser(u);",
                    f"    localStorage.setItem('{app}_user', JSON.stringify(u));",
                ]
            )
        else:
            body.extend(["    setUser(result);", f"    localStorage.setItem('{app}_user', JSON.stringify(result));"])
    else:
        body = ["    console.log('Login attempted');", "    setUser({ name: 'User', email: formData.email });"]
    body.extend("  " + line for line in env.navigate(env.post_login))
    return _form_auth(
        "login", env, body, "!formData.email || !formData.password", "Please enter email and password", "Login failed"
    )


def _gen_signup(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    name = mutation.name
    if match:
        body = [f"    await api.{match.fn_name}(formData);"]
    else:
        body = [f"    console.log('{capitalize(name)} attempted');"]
    body.extend("  " + line for line in env.navigate("login"))
    return _form_auth(
        name,
        env,
        body,
        "!formData.email || !formData.password",
        "Please fill in all required fields",
        f"{capitalize(name)} failed",
    )


def _gen_logout(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    lines = ["const logout = async () => {" if match else "const logout = () => {"]
    if match:
        lines.append(f"  try {{ await api.{match.fn_name}(); }} catch (_) {{}}")
    if env.has_auth and env.can_wire:
        lines.append("  api.clearToken();")
    lines.extend([f"  localStorage.removeItem('{env.ctx.app_name}_user');", "  setUser(null);"])
    lines.extend(env.navigate("login"))
    lines.append("};")
    return lines


def _gen_password(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    name = mutation.name
    notice = (
        "    if (typeof setSuccessMsg === 'function') "
        "setSuccessMsg('If an account exists for that email, a reset link has been sent.');"
    )
    body = [f"    await api.{match.fn_name}(formData);"] if match else []
    body.append(notice)
    return _form_auth(
        name, env, body, "!formData.email", "Please enter your email address", "Something went wrong. Please try again."
    )


def _gen_cancel(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    name = mutation.name
    lines = [f"const {name} = (e) => {{", "  e?.target?.closest?.('form')?.reset?.();"]
    if env.has_auth:
        lines.append("  setAuthError(null);")
    if name in ("cancelLogin", "goBack"):
        lines.extend(env.navigate("login"))
    lines.append("};")
    return lines


def _gen_update_profile(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    if match:
        return [
            "const updateProfile = async (e) => {",
            "  e?.preventDefault?.();",
            "  try {",
            "    const formData = e?.target ? Object.fromEntries(new FormData(e.target)) : {};",
            f"    await api.{match.fn_name}(user?.id, formData);",
            "    setUser(prev => ({ ...prev, ...formData }));",
            "  } catch (err) {",
            "    console.error('updateProfile failed:', err);",
            "  }",
            "};",
        ]
    return [
        "const updateProfile = async (e) => {",
        "  e?.preventDefault?.();",
        "  const formData = e?.target ? Object.fromEntries(new FormData(e.target)) : {};",
        "  setUser(prev => ({ ...prev, ...formData }));",
        "};",
    ]


def _gen_update(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    name = mutation.name
    if match:
        return _wired(name, "id, data", f"{match.fn_name}(id, data)", match)
    if env.array_name:
        return [
            f"const {name} = (id, data) => {{",
            f"  {setter(env.array_name)}(prev => prev.map(item => item.id === id ? {{ ...item, ...data }} : item));",
            "};",
        ]
    return _log_stub(name)


def _status_payload(name: str, env: _Env, match: Optional[RouteMatch]) -> str:
    flag = "archived" if name == "archive" else "done"
    status = f"status: '{'archived' if name == 'archive' else 'done'}'"
    ctx = env.ctx
    if match:
        target = parse_db_handler(match.handler)
        model = ctx.model(target.model) if target else None
        if model is not None and any(field.name == flag for field in model.fields):
            return f"{flag}: true"
        return status
    if env.array_name:
        field = ctx.state_field(env.array_name)
        element = unwrap_optional(field.type).of if field else None
        if isinstance(element, ObjectType) and any(item.name == flag for item in element.fields):
            return f"{flag}: true"
    return status


def _gen_status(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    name = mutation.name
    payload = _status_payload(name, env, match)
    if match:
        return _wired(name, "id", f"{match.fn_name}(id, {{ {payload} }})", match)
    if env.array_name:
        return [
            f"const {name} = (id) => {{",
            f"  {setter(env.array_name)}(prev => prev.map(item => item.id === id ? {{ ...item, {payload} }} : item));",
            "};",
        ]
    return _log_stub(name)


def _gen_generic(mutation: MutationInfo, env: _Env, match: Optional[RouteMatch]) -> List[str]:
    name = mutation.name
    safe_name = safe_action_name(name)
    generic = find_generic_route_match(name, env.routes) if env.can_wire else None
    if generic is None:
        logger.debug("mutation '%s' has no matching route; emitted as log stub", name)
        return _log_stub(name, safe_name)
    if generic.method == "PUT":
        lines = [
            f"const {safe_name} = async (id, data) => {{",
            "  try {",
            f"    const result = await api.{generic.fn_name}(id, data || {{ {name}: true }});",
        ]
        source = _first(env.routes, lambda r: route_to_function_name(r.method, r.path) == generic.fn_name)
        get_route = _collection_get(source.path, env.routes) if source else None
        if get_route is not None:
            refetch_setter = _refetch_setter(get_route.path.strip("/").split("/")[-1], env.ctx)
            if refetch_setter:
                lines.append(f"    const _refetched = await api.{route_to_function_name('GET', get_route.path)}();")
                lines.append(f"    {refetch_setter}(_refetched.data ?? _refetched);")
        lines.extend(
            ["    return result;", "  } catch (err) {", f"    console.error('{name} failed:', err);", "  }", "};"]
        )
        return lines
    return [
        f"const {safe_name} = async (data) => {{",
        "  try {",
        f"    const result = await api.{generic.fn_name}(data);",
        "    return result;",
        "  } catch (err) {",
        f"    console.error('{name} failed:', err);",
        "  }",
        "};",
    ]


_BUILDERS: Dict[str, Callable[[MutationInfo, _Env, Optional[RouteMatch]], List[str]]] = {
    "add": _gen_add,
    "addItem": _gen_add,
    "del": _gen_delete,
    "delItem": _gen_delete,
    "remove": _gen_delete,
    "toggle": _gen_toggle,
    "login": _gen_login,
    "logout": _gen_logout,
    "signup": _gen_signup,
    "register": _gen_signup,
    "forgotPassword": _gen_password,
    "resetPassword": _gen_password,
    "cancel": _gen_cancel,
    "cancelLogin": _gen_cancel,
    "goBack": _gen_cancel,
    "updateProfile": _gen_update_profile,
    "update": _gen_update,
    "save": _gen_update,
    "archive": _gen_status,
    "done": _gen_status,
}


def generate_mutations(
    ctx: "TranspileContext",
    mutations: Optional[Sequence[MutationInfo]] = None,
    *,
    has_pages: Optional[bool] = None,
) -> List[str]:
    """Function declarations for ``mutations`` (every UI mutation by default)."""
    routes = list(ctx.expanded_routes) if ctx.has_backend and ctx.api_routes else []
    arrays = ctx.array_state_fields()
    env = _Env(
        ctx=ctx,
        routes=routes,
        array_name=arrays[0].name if arrays else None,
        has_loading=ctx.state_field("loading") is not None,
        has_error=ctx.state_field("error") is not None,
        has_auth=ctx.has_auth_routes,
        has_pages=ctx.has_pages if has_pages is None else has_pages,
        post_login=post_login_page(ctx.pages),
    )
    lines: List[str] = []
    for mutation in ctx.analysis.mutations if mutations is None else mutations:
        builder = _BUILDERS.get(mutation.name, _gen_generic)
        match = find_matching_route(mutation.name, routes, ctx, mutation.arg_nodes) if routes else None
        lines.extend(builder(mutation, env, match))
        lines.append("")
    return lines


__all__ = [
    "RouteMatch",
    "model_hint",
    "find_matching_route",
    "find_generic_route_match",
    "post_login_page",
    "generate_mutations",
]
