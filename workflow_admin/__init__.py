"""
workflow_admin -- Admin panel integration of workflows.

Public API:
    Admin, AdminPool              Admin views and the pool served by the app.
    WorkflowExtension             Transition menu, route and access mapping.
    WorkflowController            The apply-transition HTTP action.
    StandardTranslator            Default transition flash messages.
    SqlAlchemyModelManager        Persistence of admin objects.
    create_app()                  Flask application wiring.
"""

from workflow_admin.admin import Admin
from workflow_admin.app import AdminPool, create_app
from workflow_admin.controller import CRUDController, WorkflowController
from workflow_admin.extension import AdminExtension, WorkflowExtension
from workflow_admin.model_manager import SqlAlchemyModelManager
from workflow_admin.security import AccessDecision, RoleSecurityHandler
from workflow_admin.translator import StandardTranslator, TranslatorInterface

__all__ = [
    "AccessDecision",
    "Admin",
    "AdminExtension",
    "AdminPool",
    "CRUDController",
    "RoleSecurityHandler",
    "SqlAlchemyModelManager",
    "StandardTranslator",
    "TranslatorInterface",
    "WorkflowController",
    "WorkflowExtension",
    "create_app",
]
