"""
Tests for the tenant isolation guard
"""
from types import SimpleNamespace

import pytest

from estate_crm.core.errors import Forbidden, NotFound
from estate_crm.core.roles import Capability
from estate_crm.core.tenancy import (
    Identity,
    ensure_capability,
    ensure_tenant_access,
    require_company_access,
)

CALLER = Identity(
    user_id="u-1", username="ana", company_alias="nord", company_id="c-1", role="PowerUser"
)


class TestRequireCompanyAccess:

    def test_caller_without_company(self):
        orphan = Identity("u-2", "x", "nord", None, "User")
        with pytest.raises(Forbidden) as exc_info:
            require_company_access(orphan)
        assert exc_info.value.message == "Company access not available"

    def test_caller_with_company(self):
        assert require_company_access(CALLER) is CALLER


class TestEnsureTenantAccess:

    def test_missing_entity_is_not_found(self):
        with pytest.raises(NotFound) as exc_info:
            ensure_tenant_access(CALLER, None, "Lead")
        assert exc_info.value.message == "Lead not found"

    def test_foreign_entity_is_forbidden(self):
        with pytest.raises(Forbidden) as exc_info:
            ensure_tenant_access(CALLER, SimpleNamespace(company_id="c-2"), "Lead")
        assert exc_info.value.message == "Access denied"

    def test_custom_denied_message(self):
        with pytest.raises(Forbidden) as exc_info:
            ensure_tenant_access(
                CALLER, SimpleNamespace(company_id="c-2"), "Property", "Property access denied"
            )
        assert exc_info.value.message == "Property access denied"

    def test_owned_entity_returned(self):
        entity = SimpleNamespace(company_id="c-1")
        assert ensure_tenant_access(CALLER, entity) is entity


class TestEnsureCapability:

    def test_allowed(self):
        ensure_capability(CALLER, Capability.manage_properties)

    def test_denied(self):
        with pytest.raises(Forbidden) as exc_info:
            ensure_capability(CALLER, Capability.manage_users, "Nope")
        assert exc_info.value.message == "Nope"
