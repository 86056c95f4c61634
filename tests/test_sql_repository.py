"""Test SQL metadata repository against SQLite."""

from edge_deployer.core.models import (
    Application,
    AppType,
    DeployedApp,
    HttpsSource,
    LifecycleStatus,
)


def make_dapp(app_id="app1", app_type=AppType.CONTAINER):
    app = Application(
        id=app_id,
        cores=2,
        memory=256,
        source=HttpsSource("https://example/img.tar"),
        status=LifecycleStatus.DEPLOYING,
    )
    return DeployedApp(app=app, type=app_type, url="https://example/img.tar")


class TestSqlMetadataRepository:
    """Test repository operations."""

    # -------------------------
    # WRITE TESTS
    # -------------------------

    def test_upsert_creates_record(self, sql_repository):
        sql_repository.upsert(make_dapp())

        retrieved = sql_repository.get("app1")
        assert retrieved is not None
        assert retrieved.status == LifecycleStatus.DEPLOYING
        assert retrieved.type == AppType.CONTAINER
        assert retrieved.app.cores == 2
        assert retrieved.app.memory == 256

    def test_upsert_updates_record(self, sql_repository):
        dapp = make_dapp()
        sql_repository.upsert(dapp)

        dapp.set_deployed("abc123")
        dapp.app.status = LifecycleStatus.READY
        sql_repository.upsert(dapp)

        retrieved = sql_repository.get("app1")
        assert retrieved.is_deployed is True
        assert retrieved.deployed_id == "abc123"
        assert retrieved.status == LifecycleStatus.READY

    def test_source_rebuilt_from_url(self, sql_repository):
        sql_repository.upsert(make_dapp())

        retrieved = sql_repository.get("app1")
        assert retrieved.url == "https://example/img.tar"
        assert retrieved.app.source == HttpsSource("https://example/img.tar")

    # -------------------------
    # READ TESTS
    # -------------------------

    def test_get_nonexistent(self, sql_repository):
        assert sql_repository.get("missing") is None

    def test_list_deployed(self, sql_repository):
        deployed = make_dapp("vm1", AppType.VM)
        deployed.set_deployed("vm1")
        sql_repository.upsert(deployed)
        sql_repository.upsert(make_dapp("app1"))

        results = list(sql_repository.list_deployed())

        assert [d.app_id for d in results] == ["vm1"]
        assert results[0].type == AppType.VM
