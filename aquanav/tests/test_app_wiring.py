from __future__ import annotations

from aquanav import main as app_main
from aquanav import serve
from aquanav.apps.accounts import models as account_models
from aquanav.apps.assets import models as asset_models
from aquanav.scripts import seed_defaults


def _paths():
    return {getattr(route, "path", None) for route in app_main.app.routes}


def test_every_app_router_is_mounted():
    paths = _paths()
    for expected in (
        "/",
        "/health",
        "/auth/login",
        "/currencies",
        "/customers",
        "/employees",
        "/inventory/items",
        "/projects",
        "/payroll",
        "/sales-invoices",
        "/purchase-invoices",
        "/general-ledger",
        "/assets/instances",
        "/error-logs",
        "/vessel-location/{imo}",
        "/dashboard/stats",
    ):
        assert expected in paths, expected


def test_cors_origins_from_env(monkeypatch):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://erp.example.com, https://ops.example.com ,")
    assert app_main._allowed_origins() == ["https://erp.example.com", "https://ops.example.com"]

    monkeypatch.delenv("CORS_ALLOWED_ORIGINS")
    assert "http://localhost:5173" in app_main._allowed_origins()


def test_serve_options(monkeypatch):
    for name in ("SSL_CERTFILE", "SSL_KEYFILE", "SSL_CA_CERTS", "SSL_KEYFILE_PASSWORD", "RELOAD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.setenv("WEB_CONCURRENCY", "4")
    monkeypatch.setenv("SSL_CERTFILE", "/etc/tls/cert.pem")

    options = serve.build_options()
    assert options["port"] == 9001
    assert options["workers"] == 4
    assert options["ssl_certfile"] == "/etc/tls/cert.pem"
    assert "ssl_keyfile" not in options

    monkeypatch.setenv("RELOAD", "yes")
    assert "workers" not in serve.build_options()


def test_seed_is_idempotent(db_session, monkeypatch):
    monkeypatch.setattr(seed_defaults, "ADMIN_PASSWORD", "Sup3rSecret!")

    first = seed_defaults.seed(db_session)
    db_session.commit()
    second = seed_defaults.seed(db_session)
    db_session.commit()

    assert first["admin_created"] is True
    assert first["asset_types_created"] == 4
    assert second["admin_created"] is False
    assert second["asset_types_created"] == 0
    admin = db_session.query(account_models.User).one()
    assert admin.role == account_models.AccountRole.ADMIN
    assert admin.email == "admin@aquanav.example.com"
    assert db_session.query(asset_models.AssetType).count() == 4
