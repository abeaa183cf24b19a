# Resource name -> router factory. Imports happen inside the factories so that
# a broken resource module only fails its own mount.
from fastapi import APIRouter
from types import MappingProxyType

def auth_router() -> APIRouter:
    from ..api.auth import routes
    return routes.router

def users_router() -> APIRouter:
    from ..api.users import routes
    return routes.router

def roles_router() -> APIRouter:
    from ..api.roles import routes
    return routes.router

def permissions_router() -> APIRouter:
    from ..api.permissions import routes
    return routes.router

def tenders_router() -> APIRouter:
    from ..api.tenders import routes
    return routes.tenders_router

def documents_router() -> APIRouter:
    from ..api.tenders import routes
    return routes.documents_router

def header_notes_router() -> APIRouter:
    from ..api.tenders import routes
    return routes.header_notes_router

def tender_budget_router() -> APIRouter:
    from ..api.tenders import routes
    return routes.tender_budget_router

def visibility_settings_router() -> APIRouter:
    from ..api.users import routes
    return routes.visibility_router

def finance_router() -> APIRouter:
    from ..api.finance import routes
    return routes.overview_router

def analytics_router() -> APIRouter:
    from ..api.finance import routes
    return routes.analytics_router

def dolg_table_router() -> APIRouter:
    from ..api.finance import routes
    return routes.dolg_table_router

def loans_router() -> APIRouter:
    from ..api.finance import routes
    return routes.loans_router

def debit_cards_router() -> APIRouter:
    from ..api.finance import routes
    return routes.debit_cards_router

def credit_cards_router() -> APIRouter:
    from ..api.finance import routes
    return routes.credit_cards_router

def transactions_router() -> APIRouter:
    from ..api.finance import routes
    return routes.transactions_router

def db_status_router() -> APIRouter:
    from ..api.system import routes
    return routes.db_status_router

HANDLERS = MappingProxyType({
    "auth": auth_router,
    "users": users_router,
    "roles": roles_router,
    "permissions": permissions_router,
    "tenders": tenders_router,
    "finance": finance_router,
    "headernotes": header_notes_router,
    "analytics": analytics_router,
    "documents": documents_router,
    "visibilitySettings": visibility_settings_router,
    "tenderbudget": tender_budget_router,
    "dolgtable": dolg_table_router,
    "loans": loans_router,
    "debitcard": debit_cards_router,
    "creditcard": credit_cards_router,
    "transaction": transactions_router,
    "dbstatus": db_status_router,
})
