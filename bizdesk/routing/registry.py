"""
Route table and mounting of resource routers.

The table maps a logical resource name to its URL prefix and is built
once at startup. Handlers are resolved through an explicit mapping of
name -> router factory. A resource whose factory is missing or raises
is logged and skipped so the rest of the API still starts.
"""
from dataclasses import dataclass, field
from fastapi import APIRouter, Depends
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
import logging

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[], APIRouter]

# The only resource reachable without a bearer token
PUBLIC_RESOURCE = "auth"

# /accounts is kept alongside /dolg_table for older clients; both stay supported
HANDLER_ALIASES = MappingProxyType({"accounts": "dolgtable"})

@dataclass(frozen=True)
class RouteEntry:
    name: str
    prefix: str

    @property
    def handler_name(self) -> str:
        return HANDLER_ALIASES.get(self.name, self.name)

    @property
    def is_public(self) -> bool:
        return self.name == PUBLIC_RESOURCE

class RouteTable:
    """Immutable, ordered set of route entries with unique names and prefixes."""

    def __init__(self, entries: Union[Mapping[str, str], Iterable[Tuple[str, str]]]):
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        built: List[RouteEntry] = []
        names, prefixes = set(), set()
        for name, prefix in pairs:
            if not prefix.startswith("/") or prefix == "/":
                raise ValueError(f"Route prefix for '{name}' must start with '/' and name a path: {prefix!r}")
            if name in names:
                raise ValueError(f"Duplicate route name: {name}")
            if prefix in prefixes:
                raise ValueError(f"Duplicate route prefix: {prefix}")
            names.add(name)
            prefixes.add(prefix)
            built.append(RouteEntry(name=name, prefix=prefix))
        self._entries: Tuple[RouteEntry, ...] = tuple(built)

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return any(entry.name == name for entry in self._entries)

    def get(self, name: str) -> Optional[RouteEntry]:
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self._entries]

DEFAULT_ROUTE_TABLE = RouteTable({
    "auth": "/auth",
    "users": "/users",
    "roles": "/roles",
    "permissions": "/permissions",
    "tenders": "/tenders",
    "finance": "/finance",
    "headernotes": "/header-notes",
    "analytics": "/analytics",
    "documents": "/documents",
    "visibilitySettings": "/visibility_settings",
    "tenderbudget": "/tender_budget",
    "dolgtable": "/dolg_table",
    "accounts": "/accounts",
    "loans": "/loans",
    "debitcard": "/debit_cards",
    "creditcard": "/credit_cards",
    "transaction": "/transactions",
    "dbstatus": "/db-status",
})

@dataclass(frozen=True)
class ModuleResolutionFailure:
    name: str
    prefix: str
    detail: str

@dataclass
class MountReport:
    mounted: List[RouteEntry] = field(default_factory=list)
    failed: List[ModuleResolutionFailure] = field(default_factory=list)

    @property
    def mounted_names(self) -> List[str]:
        return [entry.name for entry in self.mounted]

    @property
    def failed_names(self) -> List[str]:
        return [failure.name for failure in self.failed]

def resolve_handler(entry: RouteEntry, handlers: Mapping[str, HandlerFactory]) -> APIRouter:
    factory = handlers.get(entry.handler_name)
    if factory is None:
        raise LookupError(f"no handler registered for '{entry.handler_name}'")
    return factory()

def mount_routes(
    router: APIRouter,
    table: RouteTable,
    handlers: Mapping[str, HandlerFactory],
    auth_dependency: Callable
) -> MountReport:
    """
    Mount every entry of `table` on `router`, in declaration order.

    Resolution failures (missing factory, factory raising) are logged
    and recorded in the report. Anything else, such as a factory that
    returns something other than an APIRouter, aborts startup.
    """
    report = MountReport()

    for entry in table:
        try:
            handler = resolve_handler(entry, handlers)
        except Exception as e:
            logger.warning(
                f"Route {entry.prefix} not mounted: resource '{entry.name}' could not be resolved: {e}",
                exc_info=True,
            )
            report.failed.append(ModuleResolutionFailure(entry.name, entry.prefix, str(e)))
            continue

        if not isinstance(handler, APIRouter):
            raise TypeError(
                f"Handler for '{entry.name}' returned {type(handler).__name__}, expected APIRouter"
            )

        dependencies = [] if entry.is_public else [Depends(auth_dependency)]
        router.include_router(
            handler,
            prefix=entry.prefix,
            tags=[entry.name],
            dependencies=dependencies,
        )
        report.mounted.append(entry)
        logger.debug(f"Route {entry.prefix} mounted (resource '{entry.name}')")

    logger.info(
        f"Mounted {len(report.mounted)} of {len(table)} routes"
        + (f"; failed: {', '.join(report.failed_names)}" if report.failed else "")
    )
    return report
