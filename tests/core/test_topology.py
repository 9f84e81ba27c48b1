"""Tests for topology rendering."""

from pathlib import Path

from localsite.core.constants import (
    LABEL_APP_TYPE,
    LABEL_APPROOT,
    LABEL_CONFIG_HASH,
    LABEL_PLATFORM,
    LABEL_SITE_NAME,
    ROUTER_NETWORK,
)
from localsite.core.topology import render
from localsite.models.config import ProjectConfig


def make_config(**overrides):
    values = dict(name="sample", type="drupal8", docroot="web", approot="/srv/sample")
    values.update(overrides)
    return ProjectConfig(**values)


class TestRender:
    """Test cases for render."""

    def test_render_is_deterministic(self):
        """Test that identical input renders identical descriptors."""
        first = render(make_config(), Path("/tmp/import"))
        second = render(make_config(), Path("/tmp/import"))

        assert first == second

    def test_services_and_discovery_labels(self):
        """Test that every service carries the four discovery labels."""
        descriptor = render(make_config(), Path("/tmp/import"))

        assert [s.name for s in descriptor.services] == ["db", "web", "dba"]
        for spec in descriptor.services:
            assert spec.labels[LABEL_PLATFORM] == "localsite"
            assert spec.labels[LABEL_SITE_NAME] == "sample"
            assert spec.labels[LABEL_APPROOT] == "/srv/sample"
            assert spec.labels[LABEL_APP_TYPE] == "drupal8"
            assert LABEL_CONFIG_HASH in spec.labels

    def test_web_service(self):
        """Test web mounts, docroot and router network membership."""
        web = render(make_config(), Path("/tmp/import"), tld="example.test").service("web")

        assert web.binds["/srv/sample"]["bind"] == "/var/www/html"
        assert web.environment["NGINX_DOCROOT"] == "/var/www/html/web"
        assert web.environment["LOCALSITE_HOSTNAME"] == "sample.example.test"
        assert web.networks[ROUTER_NETWORK] == ["sample-web"]
        assert web.networks["localsite-sample"] == ["web"]

    def test_db_service(self):
        """Test the db named volume, import mount and healthcheck."""
        descriptor = render(make_config(), Path("/tmp/import"))
        db = descriptor.service("db")

        assert descriptor.volume_names() == ["sample-mysql"]
        assert db.binds["/tmp/import"]["bind"] == "/db/import"
        assert "mysqladmin ping" in db.healthcheck["test"][1]

    def test_config_hash_tracks_changes(self):
        """Test that changing an image changes only that service's hash."""
        before = render(make_config(), Path("/tmp/import"))
        after = render(make_config(webimage="custom/web:1"), Path("/tmp/import"))

        assert before.service("web").labels[LABEL_CONFIG_HASH] != after.service("web").labels[LABEL_CONFIG_HASH]
        assert before.service("db").labels[LABEL_CONFIG_HASH] == after.service("db").labels[LABEL_CONFIG_HASH]
