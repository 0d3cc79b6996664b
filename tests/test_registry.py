"""Tests for tenant code resolution and camera display names."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from societyguard.models.camera import Camera
from societyguard.models.society import Society
from societyguard.services.registry import CameraRegistry, TenantRegistry, camera_label


@pytest.fixture
def registry_db(db_session):
    db_session.add_all([
        Society(code="C01", name="Palm Residency"),
        Society(code="GREEN-A", name="Green Acres A"),
        Society(code="GREEN-B", name="Green Acres B"),
        Society(code="LAKE_VIEW", name="Lake View"),
    ])
    db_session.add_all([
        Camera(camera_id="CAM-GATE-1", name="Main Gate", location="North entrance"),
        Camera(camera_id="CAM-LOBBY", name="Lobby", location="Lobby"),
        Camera(camera_id="CAM-BARE", name="Parking"),
    ])
    db_session.commit()
    return db_session


class TestTenantRegistry:

    @pytest.mark.parametrize("hint", [None, "", "   "])
    def test_empty_hint_uses_default(self, registry_db, hint):
        assert TenantRegistry(registry_db).resolve_tenant_code(hint) == "default"

    def test_exact_code_is_case_insensitive(self, registry_db):
        assert TenantRegistry(registry_db).resolve_tenant_code("c01") == "C01"

    def test_numeric_hint_matches_society_id(self, registry_db):
        society = registry_db.query(Society).filter(Society.code == "LAKE_VIEW").one()
        assert TenantRegistry(registry_db).resolve_tenant_code(str(society.id)) == "LAKE_VIEW"
        assert TenantRegistry(registry_db).resolve_tenant_code(society.id) == "LAKE_VIEW"

    def test_unique_prefix_resolves(self, registry_db):
        assert TenantRegistry(registry_db).resolve_tenant_code("lake") == "LAKE_VIEW"

    def test_ambiguous_prefix_keeps_literal_hint(self, registry_db):
        assert TenantRegistry(registry_db).resolve_tenant_code("GREEN") == "GREEN"

    def test_like_wildcards_are_literal(self, registry_db):
        assert TenantRegistry(registry_db).resolve_tenant_code("%") == "%"
        assert TenantRegistry(registry_db).resolve_tenant_code("LAKE%") == "LAKE%"

    def test_unknown_hint_is_kept(self, registry_db):
        assert TenantRegistry(registry_db).resolve_tenant_code("SITE-77") == "SITE-77"


class TestCameraRegistry:

    def test_name_with_distinct_location(self, registry_db):
        assert CameraRegistry(registry_db).get_camera_name("CAM-GATE-1") == "Main Gate (North entrance)"

    def test_name_only_when_location_matches_or_missing(self, registry_db):
        cameras = CameraRegistry(registry_db)
        assert cameras.get_camera_name("CAM-LOBBY") == "Lobby"
        assert cameras.get_camera_name("CAM-BARE") == "Parking"

    def test_unknown_camera(self, registry_db):
        cameras = CameraRegistry(registry_db)
        assert cameras.get_camera_name("CAM-X") is None
        assert cameras.resolve_camera_name("CAM-X") == camera_label("CAM-X") == "Camera CAM-X"
        assert cameras.resolve_camera_name("CAM-X", fallback="Tower B") == "Tower B"
        assert cameras.resolve_camera_name("CAM-GATE-1", fallback="Tower B") == "Main Gate (North entrance)"


class TestTenantHintEdgeCases:

    @pytest.mark.parametrize("hint", ["²", "١", "9" * 40])
    def test_non_ascii_or_oversized_digits_do_not_raise(self, registry_db, hint):
        assert TenantRegistry(registry_db).resolve_tenant_code(hint) == hint
