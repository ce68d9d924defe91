"""Top-level block nodes and the application root.

Blocks never point at each other. A route naming a model, or a hook naming
a route, holds a plain string that the context extractor resolves later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Union

from .types import EnumType, Field, Literal, AirType
from .ui import UINode


@dataclass
class StateBlock:
    fields: List[Field] = field(default_factory=list)

    kind: ClassVar[str] = "state"


@dataclass
class StyleBlock:
    properties: Dict[str, Literal] = field(default_factory=dict)

    kind: ClassVar[str] = "style"


@dataclass
class UIBlock:
    children: List[UINode] = field(default_factory=list)

    kind: ClassVar[str] = "ui"


@dataclass
class Route:
    """An ``@api`` route; ``method`` may be the ``CRUD`` shorthand."""

    method: str
    path: str
    handler: str
    params: Optional[List[Field]] = None


@dataclass
class APIBlock:
    routes: List[Route] = field(default_factory=list)

    kind: ClassVar[str] = "api"


@dataclass
class AuthBlock:
    required: bool = False
    role: Optional[Union[str, EnumType]] = None
    redirect: Optional[str] = None

    kind: ClassVar[str] = "auth"


@dataclass
class NavRoute:
    path: str
    target: str
    condition: Optional[str] = None
    fallback: Optional[str] = None


@dataclass
class NavBlock:
    routes: List[NavRoute] = field(default_factory=list)

    kind: ClassVar[str] = "nav"


@dataclass
class PersistBlock:
    method: str
    keys: List[str] = field(default_factory=list)
    options: Optional[Dict[str, Literal]] = None

    kind: ClassVar[str] = "persist"


@dataclass
class Hook:
    trigger: str
    actions: List[str] = field(default_factory=list)


@dataclass
class HookBlock:
    hooks: List[Hook] = field(default_factory=list)

    kind: ClassVar[str] = "hook"


@dataclass
class DbField:
    name: str
    type: AirType
    primary: bool = False
    required: bool = False
    auto: bool = False
    default: Optional[Literal] = None


@dataclass
class DbModel:
    name: str
    fields: List[DbField] = field(default_factory=list)


@dataclass
class DbRelation:
    """``Model.field<>Model.field`` with an optional delete policy."""

    from_: str
    to: str
    on_delete: Optional[str] = None


@dataclass
class DbIndex:
    fields: List[str] = field(default_factory=list)
    unique: bool = False


@dataclass
class DbBlock:
    models: List[DbModel] = field(default_factory=list)
    relations: List[DbRelation] = field(default_factory=list)
    indexes: List[DbIndex] = field(default_factory=list)

    kind: ClassVar[str] = "db"


@dataclass
class CronJob:
    name: str
    schedule: str
    handler: str


@dataclass
class CronBlock:
    jobs: List[CronJob] = field(default_factory=list)

    kind: ClassVar[str] = "cron"


@dataclass
class WebhookRoute:
    method: str
    path: str
    handler: str


@dataclass
class WebhookBlock:
    routes: List[WebhookRoute] = field(default_factory=list)

    kind: ClassVar[str] = "webhook"


@dataclass
class QueueJob:
    name: str
    handler: str
    params: Optional[List[Field]] = None


@dataclass
class QueueBlock:
    jobs: List[QueueJob] = field(default_factory=list)

    kind: ClassVar[str] = "queue"


@dataclass
class EmailTemplate:
    name: str
    subject: str
    params: Optional[List[Field]] = None


@dataclass
class EmailBlock:
    templates: List[EmailTemplate] = field(default_factory=list)

    kind: ClassVar[str] = "email"


@dataclass
class EnvVar:
    name: str
    type: str
    required: bool = False
    default: Optional[Literal] = None


@dataclass
class EnvBlock:
    vars: List[EnvVar] = field(default_factory=list)

    kind: ClassVar[str] = "env"


@dataclass
class DeployBlock:
    properties: Dict[str, Literal] = field(default_factory=dict)

    kind: ClassVar[str] = "deploy"


@dataclass
class HandlerContract:
    name: str
    params: List[Field] = field(default_factory=list)
    target: Optional[str] = None


@dataclass
class HandlerBlock:
    contracts: List[HandlerContract] = field(default_factory=list)

    kind: ClassVar[str] = "handler"


Block = Union[
    StateBlock,
    StyleBlock,
    UIBlock,
    APIBlock,
    AuthBlock,
    NavBlock,
    PersistBlock,
    HookBlock,
    DbBlock,
    CronBlock,
    WebhookBlock,
    QueueBlock,
    EmailBlock,
    EnvBlock,
    DeployBlock,
    HandlerBlock,
]


@dataclass
class App:
    name: str
    blocks: List[Block] = field(default_factory=list)

    def blocks_of(self, kind: str) -> List[Block]:
        return [block for block in self.blocks if block.kind == kind]


@dataclass
class AirAST:
    app: App
    version: str = "0.1"
