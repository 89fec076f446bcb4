# Overview: Pytest coverage for the Flask CLI command groups.

import pytest

from wholesale import cli
from wholesale.models import Distributor, DistributorVendor
from wholesale.services.schema_service import SCHEMA_VERSION, SchemaContract


@pytest.fixture(scope='function')
def runner(app):
    return app.test_cli_runner()


class TestCatalogCommands:
    def test_link_vendor(self, runner, db_session, distributor_a, vendor):
        args = ['catalog', 'link-vendor', '--distributor-id', str(distributor_a.id), '--vendor-id', str(vendor.id)]

        result = runner.invoke(args=args)
        assert result.exit_code == 0
        assert f"PASS Vendor {vendor.id} linked to distributor {distributor_a.id}" in result.output

        assert runner.invoke(args=args).exit_code == 0
        assert db_session.query(DistributorVendor).count() == 1

    def test_link_unknown_vendor(self, runner, db_session, distributor_a):
        result = runner.invoke(args=['catalog', 'link-vendor', '--distributor-id', str(distributor_a.id), '--vendor-id', '999'])
        assert result.exit_code == 1
        assert "Vendor not found" in result.output
        assert db_session.query(DistributorVendor).count() == 0

    def test_link_vendor_requires_ids(self, runner, db_session):
        result = runner.invoke(args=['catalog', 'link-vendor', '--distributor-id', '1'])
        assert result.exit_code == 2

    def test_add_distributor_rejects_duplicate_code(self, runner, db_session, distributor_a):
        result = runner.invoke(args=['catalog', 'add-distributor', '--name', 'Other', '--code', 'ACME'])
        assert "FAIL Distributor with code 'ACME' already exists" in result.output
        assert db_session.query(Distributor).count() == 1


class TestDbToolsCommands:
    def test_verify_schema_passes(self, runner, db_session):
        result = runner.invoke(args=['db-tools', 'verify-schema'])
        assert result.exit_code == 0
        assert f"Schema contract: {SCHEMA_VERSION}" in result.output
        assert "PASS Required columns present." in result.output

    def test_verify_schema_reports_missing_columns(self, runner, db_session, monkeypatch):
        contract = SchemaContract(
            version=SCHEMA_VERSION,
            missing_required={"orders": ["status"]},
            missing_optional={"profit_center_resets": ["note"]},
        )
        monkeypatch.setattr(cli, "inspect_schema", lambda: contract)

        result = runner.invoke(args=['db-tools', 'verify-schema'])
        assert result.exit_code == 1
        assert "WARN profit_center_resets: optional columns missing: note" in result.output
        assert "FAIL orders: required columns missing: status" in result.output
        assert "PASS" not in result.output
