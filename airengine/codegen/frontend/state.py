"""React state declarations, persistence effects and ``@hook`` effects."""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, List, Optional, Set, Tuple

from airengine.ast import (
    AirType,
    ArrayType,
    EnumType,
    Field,
    Hook,
    ObjectType,
    OptionalType,
    PersistBlock,
    RefType,
    ScalarType,
)
from airengine.ir.routes import route_to_function_name

from .helpers import setter

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

logger = logging.getLogger(__name__)

_DURATION = re.compile(r"^(\d+)([smhd])$")
_DURATION_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
_STORAGE = {"localStorage": "localStorage", "session": "sessionStorage", "sessionStorage": "sessionStorage"}


def default_value(air_type: AirType) -> str:
    """JS initial value for a state field of ``air_type``."""
    if isinstance(air_type, ScalarType):
        if air_type.name == "str":
            return json.dumps(air_type.default) if air_type.default is not None else "''"
        if air_type.name in ("int", "float"):
            return str(air_type.default) if air_type.default is not None else "0"
        if air_type.name == "bool":
            return "true" if air_type.default is True else "false"
        return "''"
    if isinstance(air_type, EnumType):
        return json.dumps(air_type.values[0]) if air_type.values else "''"
    if isinstance(air_type, ArrayType):
        return "[]"
    if isinstance(air_type, ObjectType):
        if not air_type.fields:
            return "{}"
        return "{ " + ", ".join(f"{item.name}: {default_value(item.type)}" for item in air_type.fields) + " }"
    if isinstance(air_type, (OptionalType, RefType)):
        return "null"
    return "null"


def state_declaration(item: Field) -> str:
    return f"const [{item.name}, {setter(item.name)}] = useState({default_value(item.type)});"


def generate_state_decls(fields: List[Field]) -> List[str]:
    return [state_declaration(item) for item in fields]


# ---- persistence ----


def _key_parts(key: str) -> Tuple[str, List[str]]:
    root, *path = key.split(".")
    return root, path


def _getter(key: str) -> str:
    root, path = _key_parts(key)
    return "?.".join([root, *path])


def _nested_update(path: List[str], value: str, base: str = "prev") -> str:
    head, *rest = path
    if not rest:
        return f"{{ ...{base}, {head}: {value} }}"
    return f"{{ ...{base}, {head}: {_nested_update(rest, value, f'{base}?.{head}')} }}"


def _setter_call(key: str, value: str) -> str:
    root, path = _key_parts(key)
    if not path:
        return f"{setter(root)}({value});"
    return f"{setter(root)}(prev => ({_nested_update(path, value)}));"


def store_key(app_name: str, key: str) -> str:
    return f"{app_name}-{key.replace('.', '-')}"


def _max_age(block: PersistBlock) -> str:
    for option in block.options or {}:
        match = _DURATION.match(option)
        if match:
            return f"; max-age={int(match.group(1)) * _DURATION_SECONDS[match.group(2)]}"
    return ""


def _storage_load(block: PersistBlock, storage: str, app_name: str) -> List[str]:
    multi = len(block.keys) > 1
    lines = ["useEffect(() => {", "  try {"]
    for index, key in enumerate(block.keys):
        raw = f"raw{index}" if multi else "raw"
        saved = "_saved_" + key.replace(".", "_")
        lines.extend(
            [
                f"    const {raw} = {storage}.getItem('{store_key(app_name, key)}');",
                f"    if ({raw}) {{",
                f"      const {saved} = JSON.parse({raw});",
                f"      {_setter_call(key, saved)}",
                "    }",
            ]
        )
    lines.extend(["  } catch (e) { /* ignore corrupt storage */ }", "}, []);"])
    return lines


def _storage_save(block: PersistBlock, storage: str, app_name: str) -> List[str]:
    lines: List[str] = []
    for key in block.keys:
        root, path = _key_parts(key)
        getter = _getter(key)
        statement = f"{storage}.setItem('{store_key(app_name, key)}', JSON.stringify({getter}));"
        if path:
            statement = f"if ({getter} !== undefined) {statement}"
        lines.extend(["useEffect(() => {", f"  {statement}", f"}}, [{root}]);"])
    return lines


def _cookie_load(block: PersistBlock, app_name: str) -> List[str]:
    lines = [
        "// Cookies written from JavaScript cannot be httpOnly; keep secrets in server-set cookies.",
        "useEffect(() => {",
        "  const _cookies = Object.fromEntries(document.cookie.split('; ').filter(Boolean).map(c => {",
        "    const i = c.indexOf('=');",
        "    return [c.slice(0, i), c.slice(i + 1)];",
        "  }));",
    ]
    for key in block.keys:
        cookie = "_cookies['" + store_key(app_name, key) + "']"
        lines.extend(
            [
                f"  if ({cookie}) {{",
                f"    try {{ {_setter_call(key, f'JSON.parse(decodeURIComponent({cookie}))')} }}"
                " catch (e) { /* ignore corrupt cookie */ }",
                "  }",
            ]
        )
    lines.append("}, []);")
    return lines


def _cookie_save(block: PersistBlock, app_name: str) -> List[str]:
    max_age = _max_age(block)
    lines: List[str] = []
    for key in block.keys:
        root, _ = _key_parts(key)
        value = f"${{encodeURIComponent(JSON.stringify({_getter(key)}))}}"
        lines.extend(
            [
                "useEffect(() => {",
                f"  document.cookie = `{store_key(app_name, key)}={value}; path=/{max_age}`;",
                f"}}, [{root}]);",
            ]
        )
    return lines


def _known_keys(block: PersistBlock, ctx: "TranspileContext", roots: Optional[Set[str]]) -> PersistBlock:
    keys = []
    for key in block.keys:
        root = key.split(".")[0]
        if roots is not None and root not in roots:
            continue
        if ctx.state_field(root) is None:
            logger.debug("persist key '%s' has no matching state field; skipped", key)
            continue
        keys.append(key)
    return PersistBlock(method=block.method, keys=keys, options=block.options)


def generate_persist_load(ctx: "TranspileContext", roots: Optional[Set[str]] = None) -> List[str]:
    lines: List[str] = []
    for block in ctx.persist:
        block = _known_keys(block, ctx, roots)
        if not block.keys:
            continue
        storage = _STORAGE.get(block.method)
        if storage:
            lines.extend(_storage_load(block, storage, ctx.app_name))
        elif block.method == "cookie":
            lines.extend(_cookie_load(block, ctx.app_name))
        else:
            logger.debug("persist method '%s' is not supported; no load effect emitted", block.method)
    return lines


def generate_persist_save(ctx: "TranspileContext", roots: Optional[Set[str]] = None) -> List[str]:
    lines: List[str] = []
    for block in ctx.persist:
        block = _known_keys(block, ctx, roots)
        if not block.keys:
            continue
        storage = _STORAGE.get(block.method)
        if storage:
            lines.extend(_storage_save(block, storage, ctx.app_name))
        elif block.method == "cookie":
            lines.extend(_cookie_save(block, ctx.app_name))
    return lines


# ---- hooks ----


def _find_api_route(resource: str, ctx: "TranspileContext"):
    for route in ctx.expanded_routes:
        if route.method == "GET" and route.path.rstrip("/").endswith("/" + resource):
            return route
    return None


def hook_action(action: str, ctx: "TranspileContext") -> str:
    """One statement for a hook action; unmatched actions become an inert log call."""
    if action.startswith("~api."):
        resource = action[len("~api."):]
        route = _find_api_route(resource, ctx)
        if route is not None and ctx.state_field(resource) is not None:
            fn = route_to_function_name(route.method, route.path)
            return f"api.{fn}().then(data => {setter(resource)}(data)).catch(console.error);"
        logger.debug("hook action '%s' has no matching GET route and state field", action)
    return f"console.log({json.dumps(action)});"


def _hook_deps(hook: Hook) -> Optional[str]:
    if hook.trigger == "onMount":
        return "[]"
    if hook.trigger.startswith("onChange:"):
        return f"[{hook.trigger.split(':', 1)[1]}]"
    return None


def hooks_touching(hooks: List[Hook], names: Set[str]) -> List[Hook]:
    """Hooks that load into, or depend on, one of the state fields in ``names``."""
    selected: List[Hook] = []
    for hook in hooks:
        targets = {action[len("~api."):] for action in hook.actions if action.startswith("~api.")}
        dep = hook.trigger.split(":", 1)[1] if hook.trigger.startswith("onChange:") else None
        if targets & names or dep in names:
            selected.append(hook)
    return selected


def generate_hook_effects(ctx: "TranspileContext", hooks: Optional[List[Hook]] = None) -> List[str]:
    lines: List[str] = []
    for hook in ctx.hooks if hooks is None else hooks:
        deps = _hook_deps(hook)
        if deps is None:
            logger.debug("hook trigger '%s' is not supported; skipped", hook.trigger)
            continue
        lines.append("useEffect(() => {")
        lines.extend(f"  {hook_action(action, ctx)}" for action in hook.actions)
        lines.append(f"}}, {deps});")
    return lines


__all__ = [
    "default_value",
    "state_declaration",
    "generate_state_decls",
    "store_key",
    "generate_persist_load",
    "generate_persist_save",
    "hook_action",
    "hooks_touching",
    "generate_hook_effects",
]
