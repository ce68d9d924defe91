"""Tests for the recursive-descent parser."""

import sys

import pytest

from airengine.ast import (
    APIBlock,
    ArrayType,
    AuthBlock,
    BinaryNode,
    CronBlock,
    DbBlock,
    DeployBlock,
    ElementNode,
    EmailBlock,
    EnumType,
    EnvBlock,
    HandlerBlock,
    HookBlock,
    NavBlock,
    ObjectType,
    OptionalType,
    PersistBlock,
    QueueBlock,
    RefType,
    ScalarType,
    ScopedNode,
    StateBlock,
    StyleBlock,
    TextNode,
    UIBlock,
    UnaryNode,
    WebhookBlock,
    to_dict,
)
from airengine.errors import AirParseError
from airengine.lang import parse
from airengine.lang.parser import AST_VERSION, BLOCK_PARSERS


def blocks_of(source, kind):
    return [block for block in parse(source).app.blocks if isinstance(block, kind)]


def only(source, kind):
    found = blocks_of(source, kind)
    assert len(found) == 1
    return found[0]


class TestApp:
    def test_app_name_and_version(self):
        ast = parse("@app:todo")
        assert ast.app.name == "todo"
        assert ast.app.blocks == []
        assert ast.version == AST_VERSION == "0.1"

    def test_leading_blank_lines_and_comments_are_ignored(self):
        ast = parse("\n# header comment\n\n@app:t\n")
        assert ast.app.name == "t"

    def test_missing_app_declaration_fails_on_line_one(self):
        with pytest.raises(AirParseError) as excinfo:
            parse("@state{x:int}")
        assert excinfo.value.line == 1
        assert "Missing @app" in str(excinfo.value)

    def test_unknown_block_is_an_error(self):
        with pytest.raises(AirParseError) as excinfo:
            parse("@app:t\n@bogus(x)")
        assert excinfo.value.line == 2
        assert excinfo.value.token == "@bogus"
        assert excinfo.value.source_line == "@bogus(x)"

    def test_error_message_format(self):
        with pytest.raises(AirParseError) as excinfo:
            parse("@app:t\n@state{x:}")
        message = str(excinfo.value)
        assert message.startswith("[AIR Parse Error] Line 2:")
        assert "(token: '}')" in message

    def test_formatted_error_includes_caret(self):
        with pytest.raises(AirParseError) as excinfo:
            parse("@app:t\n@state{x:}")
        formatted = excinfo.value.format()
        assert "@state{x:}" in formatted
        assert formatted.rstrip().endswith("^")

    def test_every_block_keyword_has_a_parser(self):
        assert set(BLOCK_PARSERS) == {
            "state", "style", "ui", "api", "auth", "nav", "persist", "hook",
            "db", "cron", "webhook", "queue", "email", "env", "deploy", "handler",
        }


class TestTypes:
    def test_state_field_types(self):
        state = only(
            "@app:t\n@state{a:str,b:int(0),c:?bool,d:[str],e:{x:int},f:#User,g:enum(x,y),h:low|high}",
            StateBlock,
        )
        types = {field.name: field.type for field in state.fields}
        assert types["a"] == ScalarType(name="str")
        assert types["b"] == ScalarType(name="int", default=0)
        assert types["c"] == OptionalType(of=ScalarType(name="bool"))
        assert types["d"] == ArrayType(of=ScalarType(name="str"))
        assert isinstance(types["e"], ObjectType) and types["e"].fields[0].name == "x"
        assert types["f"] == RefType(entity="User")
        assert types["g"] == EnumType(values=["x", "y"])
        assert types["h"] == EnumType(values=["low", "high"])

    def test_multiline_state(self):
        state = only("@app:t\n@state{\n  a:str,\n  b:int\n}", StateBlock)
        assert [field.name for field in state.fields] == ["a", "b"]

    def test_list_and_map_shorthands(self):
        state = only("@app:t\n@state{tags:list(int),meta:map}", StateBlock)
        assert state.fields[0].type == ArrayType(of=ScalarType(name="int"))
        assert state.fields[1].type == ObjectType(fields=[])


class TestDb:
    SOURCE = (
        "@app:t\n"
        "@db{\n"
        "  User{id:int:primary:auto,email:str:required,role:enum(admin,member):default(member)}\n"
        "  Post{id:int:primary:auto,title:str,author_id:int,created_at:datetime:auto}\n"
        "  @relation(Post.author_id<>User.id:cascade)\n"
        "  @index(User.email:unique,Post.title+Post.author_id)\n"
        "}"
    )

    def test_models_and_modifiers(self):
        db = only(self.SOURCE, DbBlock)
        assert [model.name for model in db.models] == ["User", "Post"]
        user_id, email, role = db.models[0].fields
        assert user_id.primary and user_id.auto
        assert email.required and not email.primary
        assert role.default == "member"
        assert db.models[1].fields[3].auto

    def test_relations_and_indexes(self):
        db = only(self.SOURCE, DbBlock)
        relation = db.relations[0]
        assert (relation.from_, relation.to, relation.on_delete) == ("Post.author_id", "User.id", "cascade")
        assert db.indexes[0].fields == ["User.email"] and db.indexes[0].unique
        assert db.indexes[1].fields == ["Post.title", "Post.author_id"] and not db.indexes[1].unique

    def test_set_null_policy_is_camel_cased(self):
        db = only("@app:t\n@db{A{id:int}\n@relation(A.b_id<>B.id:set-null)}", DbBlock)
        assert db.relations[0].on_delete == "setNull"


class TestApi:
    def test_routes(self):
        api = only(
            "@app:t\n@api(\n  GET:/items>~db.Item.findMany\n  POST:/auth/login(email:str,?remember:bool)>auth.login\n  CRUD:/users/:id/posts>~db.Post\n)",
            APIBlock,
        )
        get, login, crud = api.routes
        assert (get.method, get.path, get.handler) == ("GET", "/items", "~db.Item.findMany")
        assert login.path == "/auth/login"
        assert [param.name for param in login.params] == ["email", "?remember"]
        assert login.params[1].type == ScalarType(name="bool")
        assert (crud.method, crud.path, crud.handler) == ("CRUD", "/users/:id/posts", "~db.Post")

    def test_route_without_params_has_none(self):
        api = only("@app:t\n@api(GET:/x>~db.X.findMany)", APIBlock)
        assert api.routes[0].params is None


class TestUi:
    def test_flow_and_compose(self):
        ui = only('@app:t\n@ui(header>h1>"Hi"+btn:!go)', UIBlock)
        root = ui.children[0]
        assert isinstance(root, BinaryNode) and root.operator == "+"
        assert root.left.operator == ">"
        assert root.right.operator == ":"
        assert isinstance(root.right.right, UnaryNode) and root.right.right.operator == "!"

    def test_pages_and_sections(self):
        ui = only('@app:t\n@ui(\n  @page:home(h1>"Home")\n  @section:about(p>"x")\n)', UIBlock)
        home, about = ui.children
        assert isinstance(home, ScopedNode) and (home.scope, home.name) == ("page", "home")
        assert isinstance(about, ScopedNode) and about.scope == "section"

    def test_element_with_children_and_dotted_names(self):
        ui = only("@app:t\n@ui(grid:3(card+card)\ntext:items.length)", UIBlock)
        grid, text = ui.children
        assert isinstance(grid, ElementNode) and grid.element == "grid"
        assert len(grid.children) == 2
        assert text.right == ElementNode(element="items.length")

    def test_raw_object_literal_becomes_text(self):
        ui = only("@app:t\n@ui(btn:!add({text:#new.text}))", UIBlock)
        action = ui.children[0].right
        assert action.operand.children[0] == TextNode("{text:#new.text}")

    def test_deep_nesting_is_capped(self):
        source = "@app:t\n@ui(" + "a(" * 600 + ")" * 600 + ")"
        with pytest.raises(AirParseError) as excinfo:
            parse(source)
        assert "Max nesting depth" in str(excinfo.value)

    def test_recursion_limit_is_restored(self):
        before = sys.getrecursionlimit()
        parse("@app:t\n@ui(" + "a(" * 200 + ")" * 200 + ")")
        assert sys.getrecursionlimit() == before
        with pytest.raises(AirParseError):
            parse("@app:t\n@ui(" + "a(" * 600 + ")" * 600 + ")")
        assert sys.getrecursionlimit() == before


class TestOtherBlocks:
    def test_style(self):
        style = only("@app:t\n@style(theme:light,accent:#10b981,radius:8,font:sans+mono)", StyleBlock)
        assert style.properties == {"theme": "light", "accent": "#10b981", "radius": 8, "font": "sans+mono"}

    def test_auth(self):
        auth = only("@app:t\n@auth(required,role:enum(admin,user),redirect:/login)", AuthBlock)
        assert auth.required
        assert auth.role == EnumType(values=["admin", "user"])
        assert auth.redirect == "/login"

    def test_nav(self):
        nav = only("@app:t\n@nav(/>?user>/dashboard:/login,/about>about)", NavBlock)
        first, second = nav.routes
        assert (first.path, first.condition, first.target, first.fallback) == ("/", "user", "/dashboard", "/login")
        assert (second.path, second.target) == ("/about", "about")

    def test_persist(self):
        persist = only("@app:t\n@persist:cookie(user.token,httpOnly,7d)", PersistBlock)
        assert persist.method == "cookie"
        assert persist.keys == ["user.token"]
        assert persist.options == {"httpOnly": True, "7d": True}

    def test_hooks(self):
        hooks = only("@app:t\n@hook(onMount>~api.todos+~api.stats\nonChange:filter>~api.todos)", HookBlock)
        assert hooks.hooks[0].trigger == "onMount"
        assert hooks.hooks[0].actions == ["~api.todos", "~api.stats"]
        assert hooks.hooks[1].trigger == "onChange:filter"

    def test_backend_service_blocks(self, services_source):
        cron = only(services_source, CronBlock)
        assert (cron.jobs[0].name, cron.jobs[0].schedule, cron.jobs[0].handler) == ("cleanup", "0 3 * * *", "~jobs.cleanup")
        webhook = only(services_source, WebhookBlock)
        assert (webhook.routes[0].method, webhook.routes[0].path) == ("POST", "/webhooks/stripe")
        queue = only(services_source, QueueBlock)
        assert [param.name for param in queue.jobs[0].params] == ["userId", "format"]
        email = only(services_source, EmailBlock)
        assert email.templates[0].subject == "Welcome to ops"
        env = only(services_source, EnvBlock)
        assert [(v.name, v.type, v.required, v.default) for v in env.vars] == [
            ("API_KEY", "str", True, None),
            ("MAX_RETRIES", "int", False, 5),
            ("DEBUG", "bool", False, False),
        ]
        deploy = only(services_source, DeployBlock)
        assert deploy.properties == {"port": 9000, "region": "eu"}

    def test_handler_contracts(self):
        handlers = only("@app:t\n@handler(sendInvite(email:str)>~email.invite\nping)", HandlerBlock)
        assert handlers.contracts[0].target == "~email.invite"
        assert handlers.contracts[1].params == []

    def test_duplicate_handler_is_an_error(self):
        with pytest.raises(AirParseError, match="Duplicate handler"):
            parse("@app:t\n@handler(a\na)")


class TestToDict:
    def test_tagged_nodes_gain_kind(self, minimal_crud_source):
        data = to_dict(parse(minimal_crud_source))
        assert data["version"] == "0.1"
        assert [block["kind"] for block in data["app"]["blocks"]] == ["db", "api"]
        field = data["app"]["blocks"][0]["models"][0]["fields"][0]
        assert field["type"] == {"kind": "scalar", "name": "int"}
