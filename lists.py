"""
List registry: which collections exist, their schemas and access rules.

`build_registry()` is called once by the application factory; the returned
Registry is read-only.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Tuple, Type

from pydantic import BaseModel

import schemas
from access import MEMBER_LIST_ACCESS, USER_ACCESS, ListAccess
from schemas import partial_model


@dataclass(frozen=True)
class ListConfig:
    key: str
    path: str
    schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    access: ListAccess
    tracking: bool = True
    secret_fields: Tuple[str, ...] = ()
    unique_fields: Tuple[str, ...] = ()

    @property
    def collection(self) -> str:
        return self.key.lower()

    def describe(self) -> Dict[str, Any]:
        fields = {}
        for name, info in self.schema.model_fields.items():
            fields[name] = {
                "type": getattr(info.annotation, "__name__", str(info.annotation)),
                "required": info.is_required(),
                "label": info.description,
                "unique": name in self.unique_fields,
                "secret": name in self.secret_fields,
            }
        return {
            "path": f"/api/{self.path}",
            "collection": self.collection,
            "tracking": self.tracking,
            "access": self.access.describe(),
            "fields": fields,
        }


class Registry:
    def __init__(self, lists):
        self._lists: Mapping[str, ListConfig] = MappingProxyType({cfg.key: cfg for cfg in lists})

    def __iter__(self) -> Iterator[ListConfig]:
        return iter(self._lists.values())

    def __len__(self) -> int:
        return len(self._lists)

    def __contains__(self, key) -> bool:
        return key in self._lists

    def get(self, key: str) -> ListConfig:
        return self._lists[key]

    def keys(self):
        return list(self._lists)


def _member_list(model: Type[BaseModel], path: str) -> ListConfig:
    return ListConfig(
        key=model.__name__,
        path=path,
        schema=model,
        update_schema=partial_model(model),
        access=MEMBER_LIST_ACCESS,
    )


def build_registry() -> Registry:
    return Registry([
        ListConfig(
            key="User",
            path="users",
            schema=schemas.User,
            update_schema=partial_model(schemas.User, non_nullable=("password",)),
            access=USER_ACCESS,
            tracking=False,
            secret_fields=("password",),
            unique_fields=("email",),
        ),
        _member_list(schemas.Event, "events"),
        _member_list(schemas.Game, "games"),
        _member_list(schemas.GamePlayer, "game-players"),
        _member_list(schemas.GameLog, "game-logs"),
        _member_list(schemas.Organization, "organizations"),
        _member_list(schemas.Team, "teams"),
        _member_list(schemas.Player, "players"),
        _member_list(schemas.GameStatSummary, "game-stat-summaries"),
    ])
