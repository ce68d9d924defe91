import textwrap

import pytest


def pytest_configure(config):
    """Register markers for pytest."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def _source(text: str) -> str:
    return textwrap.dedent(text).strip() + "\n"


MINIMAL_CRUD_SOURCE = _source(
    """
    @app:t
    @db{Item{id:int:primary:auto,name:str}}
    @api(CRUD:/items>~db.Item)
    """
)

TODO_SOURCE = _source(
    """
    @app:todo
    @state{items:[{id:int,text:str,done:bool}],filter:all|active|done}
    @style(theme:dark,accent:#6366f1,radius:12,density:comfortable)
    @ui(
      header>h1>"Todos"
      main>input:text:!add({text:#new.text})+list>items|filter>row(check:#item.done+text:#item.text+btn:icon:!del(#item.id))
    )
    @persist:localStorage(items)
    """
)

FULLSTACK_SOURCE = _source(
    """
    @app:projects
    @state{projects:[{id:int,name:str,status:str}],loading:bool,error:?str}
    @style(theme:light,accent:#10b981,radius:8)
    @db{
      Project{id:int:primary:auto,name:str:required,status:enum(active,archived),budget:?float,created_at:datetime:auto}
      Task{id:int:primary:auto,title:str,done:bool:default(false),project_id:int}
      @relation(Task.project_id<>Project.id:cascade)
      @index(Project.name:unique)
    }
    @api(
      CRUD:/projects>~db.Project
      GET:/projects/:id/tasks>~db.Task.findMany
      POST:/projects/:id/tasks>~db.Task.create
      GET:/stats>~db.Project.aggregate
      POST:/reports/export>~custom.export
    )
    @hook(onMount>~api.projects)
    @ui(
      @page:dashboard(h1>"Projects"+list>projects>card(text:#project.name+btn:!del(#project.id)))
      @page:settings(h1>"Settings")
      @page:reports(h1>"Reports")
    )
    """
)

AUTH_SOURCE = _source(
    """
    @app:crm
    @state{user:?{id:int,email:str,name:str},contacts:[{id:int,name:str}],loading:bool,error:?str}
    @db{
      User{id:int:primary:auto,email:str:required,password:str:required,name:str,role:enum(admin,member):default(member)}
      Contact{id:int:primary:auto,name:str,email:?str,user_id:int}
    }
    @api(
      POST:/auth/login(email:str,password:str)>auth.login
      POST:/auth/register(email:str,password:str,name:str)>auth.register
      CRUD:/contacts>~db.Contact
    )
    @auth(required,role:enum(admin,member))
    @ui(
      @page:login(form(input:email+input:password+btn:!login))
      @page:register(form(input:email+input:password+btn:!signup))
      @page:contacts(h1>"Contacts"+list>contacts>row(text:#contact.name+btn:!logout))
    )
    """
)

NESTED_CRUD_SOURCE = _source(
    """
    @app:board
    @db{
      Project{id:int:primary:auto,name:str}
      Task{id:int:primary:auto,title:str,project_id:int}
    }
    @api(
      CRUD:/projects>~db.Project
      CRUD:/projects/:id/tasks>~db.Task
    )
    """
)

SERVICES_SOURCE = _source(
    """
    @app:ops
    @db{Job{id:int:primary:auto,name:str}}
    @api(CRUD:/jobs>~db.Job)
    @cron(cleanup>"0 3 * * *">~jobs.cleanup)
    @webhook(POST:/webhooks/stripe>~payments.handle)
    @queue(sendReport(userId:int,format:str)>~reports.send)
    @email(welcome(name:str)>"Welcome to ops")
    @env(API_KEY:str:required,MAX_RETRIES:int:5,DEBUG:bool:false)
    @deploy(port:9000,region:"eu")
    """
)


@pytest.fixture
def minimal_crud_source():
    return MINIMAL_CRUD_SOURCE


@pytest.fixture
def todo_source():
    return TODO_SOURCE


@pytest.fixture
def fullstack_source():
    return FULLSTACK_SOURCE


@pytest.fixture
def auth_source():
    return AUTH_SOURCE


@pytest.fixture
def nested_crud_source():
    return NESTED_CRUD_SOURCE


@pytest.fixture
def services_source():
    return SERVICES_SOURCE
