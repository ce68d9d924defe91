"""Tests for context extraction."""

from airengine.config import TranspileOptions
from airengine.ir import extract_context, resolve_style
from airengine.lang import parse


def context_for(source, **options):
    return extract_context(parse(source), TranspileOptions(**options))


class TestBackendDetection:
    def test_db_and_api_imply_backend(self, minimal_crud_source):
        context = context_for(minimal_crud_source)
        assert context.has_backend
        assert context.client_root == "client/"
        assert len(context.expanded_routes) == 4
        assert [model.name for model in context.models] == ["Item"]

    def test_frontend_only_app(self, todo_source):
        context = context_for(todo_source)
        assert not context.has_backend
        assert context.client_root == ""
        assert context.models == []

    def test_env_block_alone_implies_backend(self):
        assert context_for("@app:t\n@env(API_KEY:str:required)").has_backend

    def test_state_and_ui_alone_do_not(self):
        assert not context_for('@app:t\n@state{x:int}\n@ui(h1>"x")').has_backend


class TestPagesAndLayout:
    def test_three_pages_need_a_layout(self, fullstack_source):
        context = context_for(fullstack_source)
        assert context.pages == ["dashboard", "settings", "reports"]
        assert context.has_pages
        assert context.needs_layout

    def test_two_pages_without_sidebar(self):
        context = context_for('@app:t\n@ui(@page:a(h1>"A")\n@page:b(h1>"B"))')
        assert not context.needs_layout

    def test_sidebar_forces_layout(self):
        context = context_for('@app:t\n@ui(@page:a(sidebar+main>h1>"A")\n@page:b(h1>"B"))')
        assert context.has_sidebar
        assert context.needs_layout

    def test_no_pages_no_layout(self, todo_source):
        context = context_for(todo_source)
        assert not context.has_pages
        assert not context.needs_layout


class TestAuth:
    def test_auth_gating(self, auth_source):
        context = context_for(auth_source)
        assert context.has_auth_routes
        assert context.auth_mutations == ["login", "signup", "logout"]
        assert context.has_auth_gating
        assert context.auth is not None and context.auth.required

    def test_auth_path_without_auth_block(self):
        context = context_for("@app:t\n@api(POST:/auth/login>auth.login)")
        assert context.has_auth_routes
        assert not context.has_auth_gating

    def test_no_auth(self, fullstack_source):
        context = context_for(fullstack_source)
        assert not context.has_auth_routes
        assert not context.has_auth_gating

    def test_public_pages_only_with_gating(self):
        source = (
            "@app:t\n@db{User{id:int:primary:auto,email:str}}\n"
            "@api(POST:/auth/login>auth.login)\n"
            "@ui(@page:landing(h1>\"Hi\")\n@page:login(btn:!login)\n@page:home(h1>\"Home\"))"
        )
        context = context_for(source)
        assert context.has_auth_gating
        assert context.public_page_names == ["landing", "home"]


class TestEcommerce:
    def test_products_and_cart_state(self):
        context = context_for("@app:shop\n@state{products:[{id:int,name:str}],cart:[{id:int}]}")
        assert context.is_ecommerce

    def test_products_and_order_model(self):
        context = context_for("@app:shop\n@db{Product{id:int}\nOrder{id:int}}")
        assert context.is_ecommerce

    def test_products_alone_is_not_a_store(self):
        assert not context_for("@app:t\n@state{products:[{id:int}]}").is_ecommerce


class TestStyle:
    def test_defaults(self):
        style = resolve_style({})
        assert style.accent == "#6366f1"
        assert style.accent_rgb == "99, 102, 241"
        assert style.radius == 12
        assert style.is_dark
        assert style.density == "comfortable"
        assert style.max_width is None

    def test_short_hex_and_light_theme(self):
        style = resolve_style({"accent": "#abc", "theme": "light"})
        assert style.accent == "#abc"
        assert style.accent_rgb == "170, 187, 204"
        assert not style.is_dark

    def test_invalid_values_fall_back(self):
        style = resolve_style({"accent": "#zzzzzz", "radius": True, "density": "tight"})
        assert style.accent == "#6366f1"
        assert style.radius == 12
        assert style.density == "comfortable"

    def test_fonts_width_and_extra_colors(self):
        style = resolve_style({"font": "sans+mono", "maxWidth": 960, "surface": "#111111"})
        assert style.font_family.startswith("system-ui, -apple-system, sans-serif, 'SF Mono'")
        assert style.max_width == "960px"
        assert style.extra_vars == (("surface", "#111111"),)

    def test_density_spacing(self):
        assert resolve_style({"density": "compact"}).gap == "gap-2"
        assert resolve_style({"density": "spacious"}).padding == "p-8"


class TestMerging:
    def test_repeated_blocks_merge(self):
        source = (
            "@app:t\n@state{a:int}\n@state{b:str}\n"
            "@db{A{id:int}}\n@db{B{id:int}}\n"
            "@deploy(port:9000)\n@deploy(region:\"eu\")"
        )
        context = context_for(source)
        assert [field.name for field in context.state] == ["a", "b"]
        assert [model.name for model in context.models] == ["A", "B"]
        assert context.deploy == {"port": 9000, "region": "eu"}

    def test_extraction_is_pure(self, fullstack_source):
        ast = parse(fullstack_source)
        assert extract_context(ast) == extract_context(ast)

    def test_source_name_defaults_to_app_name(self, todo_source):
        assert context_for(todo_source).source_name == "todo.air"
        assert context_for(todo_source, source_name="main.air").source_name == "main.air"
