"""Tests for the FastAPI server generator."""

import pytest

from airengine.codegen import transpile
from airengine.codegen.backend.seed import parent_links, sort_by_dependency
from airengine.ir import extract_context
from airengine.lang import parse


def server_files(source):
    result = transpile(source, target="server")
    return {item.path: item.content for item in result.files}


def class_block(text, name):
    start = text.index(f"class {name}(")
    end = text.find("\nclass ", start + 1)
    return text[start:] if end == -1 else text[start:end]


class TestMinimalCrud:
    @pytest.fixture
    def files(self, minimal_crud_source):
        return server_files(minimal_crud_source)

    def test_file_set(self, files):
        assert sorted(files) == [
            ".dockerignore",
            "docker-compose.yml",
            "server/.env.example",
            "server/Dockerfile",
            "server/__init__.py",
            "server/database.py",
            "server/env.py",
            "server/main.py",
            "server/models.py",
            "server/requirements.txt",
            "server/routes.py",
            "server/schemas.py",
            "server/seed.py",
        ]

    def test_model(self, files):
        models = files["server/models.py"]
        assert "from sqlalchemy import Column, Integer, String" in models
        assert "class Item(Base):" in models
        assert "__tablename__ = 'items'" in models
        assert "id = Column(Integer, primary_key=True, autoincrement=True)" in models
        assert "name = Column(String, nullable=False)" in models

    def test_crud_routes(self, files):
        routes = files["server/routes.py"]
        assert "@router.get('/items', response_model=List[schemas.ItemRead])" in routes
        assert "@router.post('/items', response_model=schemas.ItemRead, status_code=201)" in routes
        assert "@router.put('/items/{id}', response_model=schemas.ItemRead)" in routes
        assert "@router.delete('/items/{id}', status_code=204)" in routes
        for name in ("get_items", "create_item", "update_item", "delete_item"):
            assert f"def {name}(" in routes

    def test_list_route_pages_and_counts(self, files):
        routes = files["server/routes.py"]
        assert "limit = max(1, min(limit, 100))" in routes
        assert 'response.headers["X-Total-Count"] = str(total)' in routes
        assert "models.Item.name.ilike(pattern)" in routes

    def test_literal_paths_are_registered_first(self, files):
        routes = files["server/routes.py"]
        assert routes.index("def create_item(") < routes.index("def update_item(")

    def test_schemas(self, files):
        schemas = files["server/schemas.py"]
        assert "class ItemCreate(BaseModel):\n    name: str" in schemas
        assert "class ItemUpdate(BaseModel):\n    name: Optional[str] = None" in schemas
        assert "model_config = ConfigDict(from_attributes=True)" in schemas

    def test_main_mounts_router_under_api(self, files):
        main = files["server/main.py"]
        assert 'app.include_router(router, prefix="/api")' in main
        assert '@app.get("/api/health")' in main
        assert 'expose_headers=["X-Total-Count"]' in main

    def test_python_files_carry_a_header(self, files):
        assert files["server/main.py"].startswith("# Generated by airengine server from t.air.")
        assert files["server/requirements.txt"].startswith("fastapi")

    def test_seed_data(self, files):
        seed = files["server/seed.py"]
        assert "'Item': [" in seed
        assert "def seed() -> int:" in seed

    def test_frontend_only_app_has_no_server(self, todo_source):
        assert server_files(todo_source) == {}


class TestNestedCrud:
    @pytest.fixture
    def files(self, nested_crud_source):
        return server_files(nested_crud_source)

    def test_generated_python_compiles(self, files):
        for path, content in files.items():
            if path.endswith(".py"):
                compile(content, path, "exec")

    def test_item_routes_use_a_distinct_parameter(self, files):
        routes = files["server/routes.py"]
        assert "@router.put('/projects/{id}/tasks/{taskId}', response_model=schemas.TaskRead)" in routes
        assert "@router.delete('/projects/{id}/tasks/{taskId}', status_code=204)" in routes
        assert "{id}/tasks/{id}" not in routes

    def test_item_routes_check_the_parent(self, files):
        routes = files["server/routes.py"]
        assert "record = _get_or_404(session, models.Task, taskId)" in routes
        assert routes.count("if record.project_id != id:") == 2

    def test_collection_routes_filter_by_parent(self, files):
        routes = files["server/routes.py"]
        assert "query = query.where(models.Task.project_id == id)" in routes
        assert 'data["project_id"] = id' in routes


class TestSeedOrder:
    SOURCE = (
        "@app:t\n@db{\n"
        "Member{id:int:primary:auto,name:str,team_id:int,org_id:int}\n"
        "Team{id:int:primary:auto,name:str,org_id:int}\n"
        "Org{id:int:primary:auto,name:str}\n}"
    )

    def test_models_sorted_by_foreign_key_count(self):
        context = extract_context(parse(self.SOURCE))
        assert [model.name for model in context.models] == ["Member", "Team", "Org"]
        assert [model.name for model in sort_by_dependency(context.models)] == ["Org", "Team", "Member"]

    def test_ties_keep_declaration_order(self):
        context = extract_context(parse("@app:t\n@db{B{id:int,a_id:int}\nA{id:int}\nC{id:int,a_id:int}}"))
        assert [model.name for model in sort_by_dependency(context.models)] == ["A", "B", "C"]

    def test_generated_insert_and_delete_order(self):
        seed = server_files(self.SOURCE)["server/seed.py"]
        assert seed.index("'Org': [") < seed.index("'Team': [") < seed.index("'Member': [")
        assert "for model in (models.Member, models.Team, models.Org,):" in seed

    def test_parent_links(self):
        context = extract_context(parse(self.SOURCE))
        assert parent_links(context.db) == {
            "Member": {"team_id": "Team", "org_id": "Org"},
            "Team": {"org_id": "Org"},
        }


class TestFullstack:
    @pytest.fixture
    def files(self, fullstack_source):
        return server_files(fullstack_source)

    def test_relation_and_index(self, files):
        models = files["server/models.py"]
        assert "project_id = Column(Integer, ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)" in models
        assert "Index('ix_projects_name', 'name', unique=True)," in models

    def test_column_variants(self, files):
        models = files["server/models.py"]
        assert "status = Column(Enum('active', 'archived', name='projects_status', native_enum=False), nullable=False)" in models
        assert "budget = Column(Float)" in models
        assert "created_at = Column(DateTime, server_default=func.now(), nullable=False)" in models
        assert "done = Column(Boolean, default=False, nullable=False)" in models

    def test_nested_routes_filter_by_parent(self, files):
        routes = files["server/routes.py"]
        assert "@router.get('/projects/{id}/tasks', response_model=List[schemas.TaskRead])" in routes
        assert "query = query.where(models.Task.project_id == id)" in routes
        assert 'data["project_id"] = id' in routes

    def test_aggregate(self, files):
        routes = files["server/routes.py"]
        assert 'result = {"totalProjects": total}' in routes
        assert "for value in ['active', 'archived']:" in routes
        assert "def _camel(value: str) -> str:" in routes

    def test_unknown_handler_is_a_501_stub(self, files):
        routes = files["server/routes.py"]
        assert "raise HTTPException(status_code=501, detail='Not implemented: ~custom.export')" in routes

    def test_schema_types(self, files):
        schemas = files["server/schemas.py"]
        create = class_block(schemas, "ProjectCreate")
        assert "status: Literal['active', 'archived']" in create
        assert "budget: Optional[float] = None" in create
        assert "created_at" not in create
        assert "project_id: Optional[int] = None" in class_block(schemas, "TaskCreate")
        assert "import datetime as dt" in schemas


class TestAuth:
    @pytest.fixture
    def files(self, auth_source):
        return server_files(auth_source)

    def test_auth_module(self, files):
        auth = files["server/auth.py"]
        assert "ROLES = ('admin', 'member')" in auth
        assert 'SECRET = os.getenv("JWT_SECRET", "dev-secret")' in auth
        assert "def require_auth(" in auth

    def test_protected_routes(self, files):
        routes = files["server/routes.py"]
        assert (
            "@router.get('/contacts', response_model=List[schemas.ContactRead], dependencies=[Depends(require_auth)])"
            in routes
        )
        assert "@router.post('/auth/login', response_model=schemas.AuthResponse)\n" in routes
        assert "def auth_login(" in routes
        assert 'raise HTTPException(status_code=409, detail="Email already registered")' in routes

    def test_password_never_read_back(self, files):
        schemas = files["server/schemas.py"]
        assert "password" not in class_block(schemas, "UserRead")
        assert "class RegisterRequest(BaseModel):" in schemas

    def test_password_hashed_on_user_writes(self, files):
        routes = files["server/routes.py"]
        assert 'values["password"] = hash_password(values["password"])' in routes

    def test_seed_hashes_user_passwords(self, files):
        assert "hash_password(" in files["server/seed.py"]

    def test_env_example_has_jwt_secret(self, files):
        assert "JWT_SECRET=change-me" in files["server/.env.example"]


class TestServices:
    @pytest.fixture
    def files(self, services_source):
        return server_files(services_source)

    def test_service_modules_exist(self, files):
        for name in ("webhooks.py", "cron.py", "jobs.py", "emails.py", "env.py"):
            assert f"server/{name}" in files

    def test_env_module(self, files):
        env = files["server/env.py"]
        assert "API_KEY = os.getenv('API_KEY', '')" in env
        assert "MAX_RETRIES = int(os.getenv('MAX_RETRIES', '5'))" in env
        assert "DEBUG = os.getenv('DEBUG', 'false').lower() in (\"1\", \"true\", \"yes\")" in env
        assert "REQUIRED: Tuple[str, ...] = ('API_KEY',)" in env

    def test_main_wires_services(self, files):
        main = files["server/main.py"]
        assert "from .cron import start_cron_jobs" in main
        assert "app.include_router(webhooks_router)" in main

    def test_webhook_route(self, files):
        webhooks = files["server/webhooks.py"]
        assert "@router.post('/webhooks/stripe')" in webhooks
        assert "async def stripe_webhook(request: Request)" in webhooks
        assert "WEBHOOK_SECRET_STRIPE" in webhooks

    def test_queue_and_email_registries(self, files):
        assert "'sendReport': QueueJob(name='sendReport', handler=_send_report, required=('userId', 'format'))," in files[
            "server/jobs.py"
        ]
        assert "'welcome': EmailTemplate(subject='Welcome to ops', params=('name',))," in files["server/emails.py"]

    def test_deploy_port(self, files):
        assert "EXPOSE 9000" in files["server/Dockerfile"]
        assert '"9000:9000"' in files["docker-compose.yml"]

    def test_env_example(self, files):
        example = files["server/.env.example"]
        assert "WEBHOOK_SECRET_STRIPE=" in example
        assert "API_KEY=  # required" in example
        assert "MAX_RETRIES=5" in example
        assert "DEBUG=false" in example
