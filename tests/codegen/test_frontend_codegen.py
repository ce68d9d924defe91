"""Tests for the React client generator."""

import json
from dataclasses import replace

import pytest

from airengine.ast import ElementNode, Hook, PersistBlock
from airengine.codegen import transpile
from airengine.codegen.frontend.element_map import map_element
from airengine.codegen.frontend.jsx import JSXGenerator
from airengine.codegen.frontend.state import (
    generate_hook_effects,
    generate_persist_load,
    generate_persist_save,
    hook_action,
)
from airengine.config import TranspileOptions
from airengine.ir import extract_context
from airengine.lang import parse

SCAFFOLD = [
    "package.json",
    "vite.config.js",
    "tailwind.config.cjs",
    "postcss.config.cjs",
    "index.html",
    "src/main.jsx",
    "src/index.css",
    "src/App.jsx",
]


def client_files(source):
    result = transpile(source, target="client")
    return {item.path: item.content for item in result.files}


class TestScaffold:
    def test_frontend_only_app_lives_at_root(self, todo_source):
        files = client_files(todo_source)
        assert list(files) == SCAFFOLD

    def test_backend_app_nests_client(self, minimal_crud_source):
        files = client_files(minimal_crud_source)
        assert all(path.startswith("client/") for path in files)
        assert "client/src/api.js" in files

    def test_package_json(self, todo_source):
        manifest = json.loads(client_files(todo_source)["package.json"])
        assert manifest["name"] == "todo"
        assert manifest["scripts"]["dev"] == "vite"
        assert "react" in manifest["dependencies"]

    def test_index_title(self, todo_source):
        assert "<title>Todo</title>" in client_files(todo_source)["index.html"]

    def test_theme_variables(self, todo_source):
        css = client_files(todo_source)["src/index.css"]
        assert "--accent: #6366f1;" in css
        assert "--accent-rgb: 99, 102, 241;" in css
        assert "--radius: 12px;" in css
        assert "--bg: #030712;" in css

    def test_light_theme_palette(self, fullstack_source):
        css = client_files(fullstack_source)["client/src/index.css"]
        assert "--bg: #ffffff;" in css
        assert "--accent: #10b981;" in css


class TestProvenance:
    def test_source_files_carry_a_header(self, todo_source):
        files = client_files(todo_source)
        assert files["src/App.jsx"].startswith("// Generated by airengine client from todo.air.")
        assert files["src/index.css"].startswith("/* Generated by airengine client from todo.air.")

    def test_json_has_no_header(self, todo_source):
        assert client_files(todo_source)["package.json"].startswith("{")


class TestApp:
    def test_persisted_state(self, todo_source):
        app = client_files(todo_source)["src/App.jsx"]
        assert "export default function App() {" in app
        assert "localStorage.getItem('todo-items')" in app
        assert "localStorage.setItem('todo-items'" in app

    def test_mount_hook_loads_from_api(self, fullstack_source):
        app = client_files(fullstack_source)["client/src/App.jsx"]
        assert "import * as api from './api.js';" in app
        assert "api.getProjects().then(data => setProjects(data))" in app

    def test_many_pages_are_lazy_with_layout(self, fullstack_source):
        files = client_files(fullstack_source)
        app = files["client/src/App.jsx"]
        assert "const DashboardPage = lazy(() => import('./pages/DashboardPage.jsx'));" in app
        assert "import Layout from './Layout.jsx';" in app
        for page in ("DashboardPage", "SettingsPage", "ReportsPage"):
            assert f"client/src/pages/{page}.jsx" in files
        assert "client/src/Layout.jsx" in files

    def test_auth_gated_shell(self, auth_source):
        app = client_files(auth_source)["client/src/App.jsx"]
        assert "const [user, setUser] = useState(null);" in app
        assert "const isAuthed = !!user;" in app
        assert "api.clearToken();" in app


class TestStorefront:
    SOURCE = (
        "@app:shop\n"
        "@state{products:[{id:int,name:str,price:float}],cart:[{id:int,qty:int}]}\n"
        "@db{Product{id:int:primary:auto,name:str,price:float}\nOrder{id:int:primary:auto,total:float}}\n"
        "@api(CRUD:/products>~db.Product)\n"
        '@ui(@page:shop(h1>"Shop")\n@page:cart(h1>"Cart"))'
    )

    def test_cart_page_is_generated(self):
        files = client_files(self.SOURCE)
        assert "client/src/pages/CartPage.jsx" in files
        assert "removeFromCart" in files["client/src/pages/CartPage.jsx"]
        app = files["client/src/App.jsx"]
        assert app.count("import CartPage from './pages/CartPage.jsx';") == 1
        assert app.count("currentPage === 'cart'") == 1
        assert "client/src/pages/ShopPage.jsx" in files

    def test_no_cart_page_without_a_store(self, fullstack_source):
        assert "client/src/pages/CartPage.jsx" not in client_files(fullstack_source)


class TestApiClient:
    def test_crud_functions(self, minimal_crud_source):
        api = client_files(minimal_crud_source)["client/src/api.js"]
        assert "export async function getItems({ page, limit } = {}) {" in api
        assert "export async function createItem(data) {" in api
        assert "export async function updateItem(id, data) {" in api
        assert "export async function deleteItem(id) {" in api
        assert "/** @returns {Promise<Item[]>} */" in api
        assert "import.meta.env.VITE_API_BASE_URL ?? 'http://localhost:8000/api'" in api

    def test_path_params_interpolate(self, fullstack_source):
        api = client_files(fullstack_source)["client/src/api.js"]
        assert "export async function getProjectTasks(id) {" in api
        assert "`${API_BASE}/projects/${id}/tasks`" in api

    def test_nested_item_functions_take_both_ids(self, nested_crud_source):
        api = client_files(nested_crud_source)["client/src/api.js"]
        assert "export async function updateProjectTasks(id, taskId, data) {" in api
        assert "export async function deleteProjectTasks(id, taskId) {" in api
        assert "`${API_BASE}/projects/${id}/tasks/${taskId}`" in api

    def test_delete_tolerates_no_content(self, minimal_crud_source):
        api = client_files(minimal_crud_source)["client/src/api.js"]
        assert "return res.status === 204 ? null : res.json();" in api


class TestElements:
    def test_unknown_element_renders_as_div(self, todo_source):
        context = extract_context(parse(todo_source), TranspileOptions())
        assert JSXGenerator(context).render(ElementNode(element="gizmo")) == "<div></div>"

    def test_unknown_mapping(self):
        assert map_element("gizmo").tag == "div"
        assert map_element("h1").tag == "h1"


class TestStateEffects:
    @pytest.fixture
    def context(self, auth_source):
        return extract_context(parse(auth_source), TranspileOptions())

    def test_dotted_key_updates_one_property(self, context):
        ctx = replace(context, persist=[PersistBlock(method="localStorage", keys=["user.token"])])
        load = "\n".join(generate_persist_load(ctx))
        assert "localStorage.getItem('crm-user-token')" in load
        assert "setUser(prev => ({ ...prev, token: _saved_user_token }));" in load
        save = generate_persist_save(ctx)
        assert (
            "  if (user?.token !== undefined) localStorage.setItem('crm-user-token', JSON.stringify(user?.token));"
            in save
        )
        assert "}, [user]);" in save

    def test_deep_key_spreads_each_level(self, context):
        ctx = replace(context, persist=[PersistBlock(method="session", keys=["user.profile.name"])])
        load = "\n".join(generate_persist_load(ctx))
        assert "sessionStorage.getItem('crm-user-profile-name')" in load
        assert (
            "setUser(prev => ({ ...prev, profile: { ...prev?.profile, name: _saved_user_profile_name } }));" in load
        )

    def test_cookie_with_duration(self, context):
        block = PersistBlock(method="cookie", keys=["user"], options={"7d": True, "secure": True})
        ctx = replace(context, persist=[block])
        save = generate_persist_save(ctx)
        assert (
            "  document.cookie = `crm-user=${encodeURIComponent(JSON.stringify(user))}; path=/; max-age=604800`;"
            in save
        )
        load = "\n".join(generate_persist_load(ctx))
        assert "setUser(JSON.parse(decodeURIComponent(_cookies['crm-user'])));" in load

    def test_cookie_without_duration_is_a_session_cookie(self, context):
        ctx = replace(context, persist=[PersistBlock(method="cookie", keys=["contacts"])])
        save = "\n".join(generate_persist_save(ctx))
        assert "; path=/`;" in save
        assert "max-age" not in save

    def test_unsupported_method_emits_nothing(self, context):
        ctx = replace(context, persist=[PersistBlock(method="indexedDB", keys=["contacts"])])
        assert generate_persist_load(ctx) == []
        assert generate_persist_save(ctx) == []

    def test_unknown_state_key_is_skipped(self, context):
        ctx = replace(context, persist=[PersistBlock(method="localStorage", keys=["theme"])])
        assert generate_persist_load(ctx) == []

    def test_matched_hook_action_calls_the_api(self, context):
        assert hook_action("~api.contacts", context) == (
            "api.getContacts().then(data => setContacts(data)).catch(console.error);"
        )

    def test_unmatched_hook_action_logs(self, context):
        assert hook_action("~api.invoices", context) == 'console.log("~api.invoices");'
        assert hook_action("refresh", context) == 'console.log("refresh");'

    def test_unknown_trigger_is_skipped(self, context):
        hooks = [
            Hook(trigger="onUnmount", actions=["~api.contacts"]),
            Hook(trigger="onChange:user", actions=["~api.contacts"]),
        ]
        assert generate_hook_effects(context, hooks) == [
            "useEffect(() => {",
            "  api.getContacts().then(data => setContacts(data)).catch(console.error);",
            "}, [user]);",
        ]
